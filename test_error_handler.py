#!/usr/bin/env python3
"""
Error recording tests
"""
import unittest
from unittest.mock import patch

from storefront.services.error_handler import ErrorCategory, create_error_detail, record_error


class TestErrorDetail(unittest.TestCase):
    def test_detail_fields(self):
        detail = create_error_detail(ValueError('bad price'), ErrorCategory.VALIDATION, {'field': 'price'})

        self.assertEqual(len(detail.error_id), 8)
        self.assertEqual(detail.message, 'bad price')
        self.assertEqual(detail.exception_type, 'ValueError')

        data = detail.to_dict()
        self.assertEqual(data['category'], 'validation')
        self.assertEqual(data['context'], {'field': 'price'})

    def test_empty_message_falls_back_to_type(self):
        detail = create_error_detail(TimeoutError(), ErrorCategory.STORAGE)
        self.assertEqual(detail.message, 'TimeoutError')
        self.assertEqual(detail.context, {})


class TestRecordError(unittest.TestCase):
    @patch('storefront.services.error_handler.newrelic.agent')
    def test_reports_to_newrelic(self, mock_agent):
        try:
            raise RuntimeError('connection reset')
        except RuntimeError as e:
            detail = record_error(e, ErrorCategory.DATABASE, {'operation': 'add_product'})

        mock_agent.add_custom_attribute.assert_any_call('error_id', detail.error_id)
        mock_agent.add_custom_attribute.assert_any_call('error_category', 'database')
        mock_agent.notice_error.assert_called_once_with()
        self.assertIn('RuntimeError', detail.stack_trace)

    @patch('storefront.services.error_handler.newrelic.agent')
    def test_log_level_by_category(self, mock_agent):
        with self.assertLogs('storefront.services.error_handler', level='WARNING') as logs:
            record_error(ValueError('empty name'), ErrorCategory.VALIDATION)
            record_error(OSError('bucket unreachable'), ErrorCategory.STORAGE, {'path': 'products/a.png'})

        self.assertTrue(logs.output[0].startswith('WARNING:'))
        self.assertIn('VALIDATION ERROR: empty name', logs.output[0])
        self.assertTrue(logs.output[1].startswith('ERROR:'))
        self.assertIn('"path": "products/a.png"', logs.output[1])


if __name__ == '__main__':
    unittest.main(verbosity=2)
