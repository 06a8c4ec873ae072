# models.py - نماذج قاعدة البيانات

import json
from datetime import datetime

from flask_sqlalchemy import SQLAlchemy
from werkzeug.security import check_password_hash, generate_password_hash

from form_schema import FormSchema, format_for_display

db = SQLAlchemy()

ORDER_STATUSES = ('pending', 'confirmed', 'shipped', 'delivered', 'cancelled')

STATUS_TEXT = {
    'ar': {
        'pending': 'في الانتظار',
        'confirmed': 'مؤكد',
        'shipped': 'تم الشحن',
        'delivered': 'مُسلم',
        'cancelled': 'ملغي',
    },
    'fr': {
        'pending': 'En attente',
        'confirmed': 'Confirmée',
        'shipped': 'Expédiée',
        'delivered': 'Livrée',
        'cancelled': 'Annulée',
    },
}


class AdminUser(db.Model):
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), nullable=False)
    email = db.Column(db.String(120), unique=True, nullable=False)
    password_hash = db.Column(db.String(256))
    is_active = db.Column(db.Boolean, default=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    last_login = db.Column(db.DateTime)

    def set_password(self, password):
        self.password_hash = generate_password_hash(password)

    def check_password(self, password):
        return bool(self.password_hash) and check_password_hash(self.password_hash, password)

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'email': self.email,
            'created_at': self.created_at.isoformat() if self.created_at else None,
            'last_login': self.last_login.isoformat() if self.last_login else None
        }


class Category(db.Model):
    """فئة المنتجات (نوع المنتج) مع نموذج الخيارات الخاص بها"""
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), nullable=False)
    slug = db.Column(db.String(120))
    image = db.Column(db.String(300))
    parent_id = db.Column(db.Integer, db.ForeignKey('category.id'), nullable=True)
    form_schema = db.Column(db.Text)  # JSON: {"fields": [...]}
    sort_order = db.Column(db.Integer, default=0)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    @property
    def schema(self):
        return FormSchema.from_json(self.form_schema)

    @schema.setter
    def schema(self, value):
        self.form_schema = value.to_json() if value is not None else None

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'slug': self.slug,
            'image': self.image,
            'parent_id': self.parent_id,
            'form_schema': self.schema.to_dict(),
            'product_count': len([p for p in self.products if p.is_active]),
        }


class Product(db.Model):
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(200), nullable=False)
    slug = db.Column(db.String(220))
    description = db.Column(db.Text)
    price = db.Column(db.Float, nullable=False)
    image = db.Column(db.String(300))
    category_id = db.Column(db.Integer, db.ForeignKey('category.id'), nullable=True)
    category = db.relationship('Category', backref='products')
    stock = db.Column(db.Integer, default=0)
    is_active = db.Column(db.Boolean, default=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    @property
    def schema(self):
        """المنتج يرث نموذج الخيارات من فئته"""
        return self.category.schema if self.category else FormSchema()

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'slug': self.slug,
            'description': self.description,
            'price': self.price,
            'image': self.image or f"https://via.placeholder.com/300x250?text={self.name}",
            'category': self.category.name if self.category else None,
            'category_id': self.category_id,
            'stock': self.stock,
            'in_stock': (self.stock or 0) > 0,
            'is_active': self.is_active,
            'created_at': self.created_at.isoformat() if self.created_at else None
        }


class Order(db.Model):
    id = db.Column(db.Integer, primary_key=True)
    customer_name = db.Column(db.String(100), nullable=False)
    phone = db.Column(db.String(30), nullable=False)
    city = db.Column(db.String(100), nullable=False)
    address = db.Column(db.Text, nullable=False)
    notes = db.Column(db.Text)
    total_price = db.Column(db.Float, default=0)
    status = db.Column(db.String(20), default='pending')
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def get_status_text(self, lang='ar'):
        return STATUS_TEXT.get(lang, STATUS_TEXT['ar']).get(self.status, self.status)

    def to_dict(self, lang='ar'):
        return {
            'id': self.id,
            'customer_name': self.customer_name,
            'phone': self.phone,
            'city': self.city,
            'address': self.address,
            'notes': self.notes,
            'total_price': self.total_price,
            'status': self.status,
            'status_text': self.get_status_text(lang),
            'created_at': self.created_at.isoformat() if self.created_at else None,
            'updated_at': self.updated_at.isoformat() if self.updated_at else None,
            'items': [item.to_dict() for item in self.order_items]
        }


class OrderItem(db.Model):
    id = db.Column(db.Integer, primary_key=True)
    order_id = db.Column(db.Integer, db.ForeignKey('order.id'), nullable=False)
    product_id = db.Column(db.Integer, db.ForeignKey('product.id', ondelete='SET NULL'), nullable=True)
    product_name = db.Column(db.String(200), nullable=False)
    price = db.Column(db.Float, nullable=False)  # سعر المنتج وقت الطلب
    quantity = db.Column(db.Integer, nullable=False)
    options = db.Column(db.Text)  # JSON

    order = db.relationship('Order', backref='order_items')
    product = db.relationship('Product')

    @property
    def options_dict(self):
        return json.loads(self.options) if self.options else {}

    def to_dict(self):
        options = self.options_dict
        return {
            'id': self.id,
            'product_id': self.product_id,
            'product_name': self.product_name,
            'price': self.price,
            'quantity': self.quantity,
            'options': options,
            'options_display': format_for_display(options, self.product.schema.labels() if self.product else None),
            'total': self.price * self.quantity
        }


class Banner(db.Model):
    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(200))
    image = db.Column(db.String(300), nullable=False)
    link = db.Column(db.String(300))
    order = db.Column(db.Integer, default=0)
    is_active = db.Column(db.Boolean, default=True)

    def to_dict(self):
        return {
            'id': self.id,
            'title': self.title,
            'image': self.image,
            'link': self.link,
            'order': self.order,
            'is_active': self.is_active
        }


class SiteSetting(db.Model):
    """إعدادات الموقع: قيمة JSON لكل مفتاح"""
    id = db.Column(db.Integer, primary_key=True)
    key = db.Column(db.String(100), unique=True, nullable=False)
    value = db.Column(db.Text)

    @property
    def data(self):
        return json.loads(self.value) if self.value else {}

    @data.setter
    def data(self, value):
        self.value = json.dumps(value, ensure_ascii=False)
