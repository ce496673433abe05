from storefront import db
from datetime import datetime
from uuid import uuid4

PLACEHOLDER_IMAGE = '/static/placeholder.svg'
UNCATEGORIZED = 'Uncategorized'


class Product(db.Model):
    __tablename__ = 'products'
    __table_args__ = (
        db.Index('idx_products_category_created', 'category_id', 'created_at'),
        db.Index('idx_products_created_at', 'created_at'),
    )

    id = db.Column(db.String(36), primary_key=True, default=lambda: str(uuid4()))
    name = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text)
    price = db.Column(db.Numeric(10, 2), nullable=False)
    # Display order; the first image is the thumbnail
    image_urls = db.Column(db.JSON, nullable=False, default=list)
    category_id = db.Column(db.String(36), db.ForeignKey('categories.id'), nullable=True)
    in_stock = db.Column(db.Boolean, nullable=False, default=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Populated by a join at read time
    category = db.relationship('Category', back_populates='products', lazy=True)

    @property
    def primary_image(self):
        return self.image_urls[0] if self.image_urls else PLACEHOLDER_IMAGE

    @property
    def category_name(self):
        return self.category.name if self.category else UNCATEGORIZED

    def to_dict(self, include_category=True):
        data = {
            'id': self.id,
            'name': self.name,
            'description': self.description,
            'price': float(self.price) if self.price is not None else None,
            'image_urls': list(self.image_urls or []),
            'category_id': self.category_id,
            'in_stock': self.in_stock,
            'created_at': self.created_at.isoformat() if self.created_at else None,
            'updated_at': self.updated_at.isoformat() if self.updated_at else None,
        }
        if include_category and self.category is not None:
            data['category'] = self.category.to_dict()
        return data

    def __repr__(self):
        return f'<Product {self.name}>'
