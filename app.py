# app.py - الملف الرئيسي للخادم (واجهة المتجر ولوحة الإدارة)

from flask import Flask, request, jsonify, session
from flask_cors import CORS
from dotenv import load_dotenv
from functools import wraps
from datetime import datetime
from sqlalchemy.exc import SQLAlchemyError
import secrets
import os
import re

from models import db, AdminUser, Category, Product, Order, OrderItem, Banner, SiteSetting, ORDER_STATUSES
from cart import CartStore, SessionStorage
from cache import DataCache, CACHE_KEYS
from category_tree import (
    CategoryCycleError, CategoryNode, build_tree, flatten_indented, ids_in_scope, indented_label,
    integrity_report, names_in_scope, would_create_cycle,
)
from checkout import (
    DeliveryFormError, DuplicateSubmissionError, EmptyCartError, HttpOrderClient,
    LocalOrderClient, OrderSubmissionError, SubmissionGuard, submit_order,
)
from form_schema import FormSchema, collect_options, control_for, format_for_display, new_field_id, schema_errors, validate
from messages import normalize_lang, t
from orders import OrderValidationError, create_order
from retry import linear_backoff

load_dotenv()

# إنشاء التطبيق
app = Flask(__name__)
app.config['SECRET_KEY'] = os.getenv('SECRET_KEY') or secrets.token_hex(16)
app.config['SQLALCHEMY_DATABASE_URI'] = os.getenv('DATABASE_URL', 'sqlite:///store.db')
app.config['SQLALCHEMY_TRACK_MODIFICATIONS'] = False
app.config['ORDER_API_URL'] = os.getenv('ORDER_API_URL', '')
app.config['ORDER_RETRY_DELAY'] = float(os.getenv('ORDER_RETRY_DELAY', '1.0'))
app.config['CACHE_TTL_MINUTES'] = float(os.getenv('CACHE_TTL_MINUTES', '5'))
app.config['ADMIN_EMAIL'] = os.getenv('ADMIN_EMAIL', 'admin@store.local')
app.config['ADMIN_PASSWORD'] = os.getenv('ADMIN_PASSWORD', 'admin123')
app.config['SEED_SAMPLE_DATA'] = os.getenv('SEED_SAMPLE_DATA', '1') in ('1', 'true', 'True')

# السماح بإرسال الكوكيز (الجلسة تحمل السلة)
CORS(app, supports_credentials=True)
db.init_app(app)

data_cache = DataCache(app.config['CACHE_TTL_MINUTES'])
submission_guard = SubmissionGuard()

SETTING_KEYS = ('hero_background', 'landing_config', 'site_content')
REVENUE_STATUSES = ('confirmed', 'shipped', 'delivered')

# ========== المساعدات (Helper Functions) ==========

def get_lang():
    return normalize_lang(request.args.get('lang') or request.headers.get('Accept-Language'))


def get_cart():
    return CartStore(SessionStorage(session))


def cart_token():
    if 'cart_token' not in session:
        session['cart_token'] = secrets.token_hex(8)
    return session['cart_token']


def order_client():
    client = app.config.get('ORDER_CLIENT')
    if client is not None:
        return client
    if app.config['ORDER_API_URL']:
        return HttpOrderClient(app.config['ORDER_API_URL'])
    return LocalOrderClient(create_order)


def to_int(value):
    if value in (None, ''):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def slugify(name):
    return re.sub(r'[^a-z0-9]+', '-', (name or '').lower()).strip('-') or None


def category_records():
    return Category.query.order_by(Category.sort_order, Category.name).all()


def category_tree():
    return data_cache.get_or_set(CACHE_KEYS['CATEGORIES'], lambda: build_tree(category_records()))


def cart_payload(cart):
    data = cart.to_dict()
    for item, line in zip(data['items'], cart.items):
        item['options_display'] = format_for_display(line.options)
        item['subtotal'] = line.subtotal
    return data


def admin_required(f):
    @wraps(f)
    def decorated_function(*args, **kwargs):
        admin_id = session.get('admin_id')
        if not admin_id:
            return jsonify({'error': 'Authentification requise'}), 401
        admin = db.session.get(AdminUser, admin_id)
        if not admin or not admin.is_active:
            session.pop('admin_id', None)
            return jsonify({'error': 'Accès refusé'}), 403
        return f(*args, **kwargs)
    return decorated_function


def init_sample_data():
    """إضافة بيانات تجريبية: شجرة فئات مع نماذج خيارات ومنتجات ومدير"""
    if Category.query.count() == 0:
        clothing = Category(name='ملابس', slug='clothing')
        gifts = Category(name='هدايا', slug='gifts')
        clothing.schema = FormSchema.from_json({'fields': [
            {'id': 'size', 'label': 'المقاس', 'type': 'size', 'required': True,
             'options': ['S', 'M', 'L', 'XL']},
            {'id': 'color', 'label': 'اللون', 'type': 'color', 'required': True,
             'colorOptions': [{'name': 'أسود', 'hex': '#000000'}, {'name': 'أحمر', 'hex': '#c0392b'},
                              {'name': 'أزرق ملكي', 'hex': '#4169e1'}]},
        ]})
        gifts.schema = FormSchema.from_json({'fields': [
            {'id': 'engraving_text', 'label': 'نص النقش', 'type': 'text', 'required': False,
             'placeholder': 'الاسم أو العبارة'},
            {'id': 'gift_wrap', 'label': 'تغليف الهدية', 'type': 'radio', 'required': True,
             'options': ['نعم', 'لا']},
        ]})
        db.session.add_all([clothing, gifts])
        db.session.commit()

        dresses = Category(name='فساتين', slug='dresses', parent_id=clothing.id, form_schema=clothing.form_schema)
        abayas = Category(name='عبايات', slug='abayas', parent_id=clothing.id, form_schema=clothing.form_schema)
        db.session.add_all([dresses, abayas])
        db.session.commit()

        evening = Category(name='فساتين سهرة', slug='evening-dresses', parent_id=dresses.id,
                           form_schema=clothing.form_schema)
        db.session.add(evening)
        db.session.commit()
        app.logger.info('Sample categories added')

    by_slug = {c.slug: c for c in Category.query.all()}
    if Product.query.count() == 0 and {'evening-dresses', 'abayas', 'gifts'} <= set(by_slug):
        products = [
            Product(name='فستان سهرة راقي مطرز', slug='embroidered-evening-dress', price=950,
                    description='فستان سهرة أنيق من الساتان الفاخر مع تطريز يدوي',
                    category_id=by_slug['evening-dresses'].id, stock=5),
            Product(name='عباية عصرية بقصة مودرن', slug='modern-abaya', price=550,
                    description='عباية عصرية مناسبة للمناسبات اليومية والرسمية',
                    category_id=by_slug['abayas'].id, stock=15),
            Product(name='علبة هدايا خشبية', slug='wooden-gift-box', price=120,
                    description='علبة خشبية قابلة للنقش بالاسم',
                    category_id=by_slug['gifts'].id, stock=30),
        ]
        db.session.add_all(products)
        db.session.commit()
        app.logger.info('Sample products added')

    if not AdminUser.query.filter_by(email=app.config['ADMIN_EMAIL']).first():
        admin = AdminUser(name='Administration', email=app.config['ADMIN_EMAIL'])
        admin.set_password(app.config['ADMIN_PASSWORD'])
        db.session.add(admin)
        db.session.commit()
        app.logger.info('Admin user added')

# ========== مسارات المتجر (Storefront Routes) ==========

@app.route('/api/categories', methods=['GET'])
def get_categories():
    return jsonify([node.to_dict() for node in category_tree()])


@app.route('/api/categories/options', methods=['GET'])
def get_category_options():
    options = flatten_indented(category_tree())
    for option in options:
        option['label'] = indented_label(option)
    return jsonify(options)


@app.route('/api/products', methods=['GET'])
def get_products():
    category_name = request.args.get('category', '').strip()
    search_query = request.args.get('search', '').strip()

    query = Product.query.filter_by(is_active=True)

    if category_name:
        names = names_in_scope(category_tree(), category_name)
        if not names:
            return jsonify([])
        query = query.join(Category).filter(Category.name.in_(names))

    if search_query:
        query = query.filter(Product.name.contains(search_query) | Product.description.contains(search_query))

    products = query.order_by(Product.created_at.desc(), Product.id.desc()).all()
    return jsonify([product.to_dict() for product in products])


@app.route('/api/products/<int:product_id>', methods=['GET'])
def get_product(product_id):
    product = Product.query.filter_by(id=product_id, is_active=True).first()
    if not product:
        return jsonify({'error': t('product_not_found', get_lang())}), 404

    schema = product.schema
    product_data = product.to_dict()
    product_data['form_schema'] = schema.to_dict()
    product_data['controls'] = [control_for(f) for f in schema.fields]
    return jsonify(product_data)


@app.route('/api/home', methods=['GET'])
def get_home():
    def load():
        banners = Banner.query.filter_by(is_active=True).order_by(Banner.order).limit(5).all()
        products = (Product.query.filter_by(is_active=True)
                    .order_by(Product.created_at.desc(), Product.id.desc()).limit(8).all())
        settings = {s.key: s.data for s in SiteSetting.query.filter(SiteSetting.key.in_(SETTING_KEYS)).all()}
        return {
            'banners': [b.to_dict() for b in banners],
            'products': [p.to_dict() for p in products],
            'categories': [{'id': n.id, 'name': n.name, 'image': n.image} for n in category_tree()],
            'settings': {key: settings.get(key, {}) for key in SETTING_KEYS},
        }
    return jsonify(data_cache.get_or_set(CACHE_KEYS['HOME'], load))

# ========== السلة (Cart) ==========

@app.route('/api/cart', methods=['GET'])
def get_cart_route():
    return jsonify(cart_payload(get_cart()))


@app.route('/api/cart/add', methods=['POST'])
def add_to_cart():
    lang = get_lang()
    data = request.get_json(silent=True) or {}

    try:
        quantity = int(data.get('quantity', 1))
    except (TypeError, ValueError):
        return jsonify({'error': t('invalid_quantity', lang)}), 400
    if quantity < 1:
        return jsonify({'error': t('invalid_quantity', lang)}), 400

    product = Product.query.filter_by(id=to_int(data.get('product_id')), is_active=True).first()
    if not product:
        return jsonify({'error': t('product_not_found', lang)}), 404

    fields = product.schema.fields
    options = collect_options(fields, data.get('options'))
    result = validate(fields, options, lang)
    if not result['isValid']:
        return jsonify({'error': t('invalid_options', lang), 'errors': result['errors']}), 400

    cart = get_cart()
    in_cart = sum(line.quantity for line in cart.items if line.product_id == str(product.id))
    if (product.stock or 0) < in_cart + quantity:
        return jsonify({'error': t('product_unavailable', lang)}), 400

    line = cart.add_to_cart({
        'product_id': str(product.id),
        'name': product.name,
        'price': product.price,
        'image': product.image or '',
        'options': options,
    }, quantity)
    app.logger.debug('Cart line %s now has quantity %d', line.options_key, line.quantity)

    return jsonify({
        'message': t('cart_added', lang),
        'optionsKey': line.options_key,
        'cart': cart_payload(cart)
    }), 200


@app.route('/api/cart/update', methods=['PUT'])
def update_cart_item():
    lang = get_lang()
    data = request.get_json(silent=True) or {}
    options_key = data.get('optionsKey')

    try:
        quantity = int(data.get('quantity'))
    except (TypeError, ValueError):
        return jsonify({'error': t('invalid_quantity', lang)}), 400

    cart = get_cart()
    line = cart.get_line(options_key)
    if line is None:
        return jsonify({'error': t('cart_item_not_found', lang)}), 404

    if quantity >= 1:
        product_id = to_int(line.product_id)
        product = db.session.get(Product, product_id) if product_id is not None else None
        others = sum(other.quantity for other in cart.items
                     if other.product_id == line.product_id and other is not line)
        if product is not None and (product.stock or 0) < others + quantity:
            return jsonify({'error': t('product_unavailable', lang)}), 400

    cart.update_quantity(options_key, quantity)
    message = t('cart_updated', lang) if quantity >= 1 else t('cart_removed', lang)
    return jsonify({'message': message, 'cart': cart_payload(cart)})


@app.route('/api/cart/remove', methods=['DELETE'])
def remove_from_cart():
    data = request.get_json(silent=True) or {}
    options_key = data.get('optionsKey') or request.args.get('optionsKey')
    cart = get_cart()
    cart.remove_from_cart(options_key)
    return jsonify({'message': t('cart_removed', get_lang()), 'cart': cart_payload(cart)}), 200


@app.route('/api/cart/clear', methods=['POST'])
def clear_cart():
    cart = get_cart()
    cart.clear_cart()
    return jsonify({'message': t('cart_cleared', get_lang()), 'cart': cart_payload(cart)}), 200

# ========== الطلبات (Orders) ==========

@app.route('/api/checkout', methods=['POST'])
def checkout():
    lang = get_lang()
    form = request.get_json(silent=True) or {}
    cart = get_cart()

    try:
        order_id = submit_order(
            cart, form, order_client(),
            guard=submission_guard,
            token=cart_token(),
            lang=lang,
            backoff=linear_backoff(app.config['ORDER_RETRY_DELAY'])
        )
    except DeliveryFormError as e:
        return jsonify({'error': next(iter(e.errors.values())), 'errors': e.errors}), 400
    except EmptyCartError as e:
        return jsonify({'error': str(e)}), 400
    except DuplicateSubmissionError as e:
        return jsonify({'error': str(e)}), 409
    except OrderSubmissionError as e:
        return jsonify({'error': str(e), 'network': e.is_network}), 502

    return jsonify({
        'success': True,
        'orderId': order_id,
        'message': t('order_created', lang)
    }), 201


@app.route('/api/orders', methods=['POST'])
def create_order_route():
    """endpoint إنشاء الطلب: الطلب أولاً ثم عناصره"""
    payload = request.get_json(silent=True) or {}
    try:
        order_id = create_order(payload)
    except OrderValidationError as e:
        error = 'السلة فارغة' if e.code == 'no_items' else 'جميع الحقول المطلوبة يجب ملؤها'
        return jsonify({'error': error}), 400
    except (TypeError, ValueError) as e:
        return jsonify({'error': 'بيانات الطلب غير صحيحة', 'details': str(e)}), 400
    except SQLAlchemyError as e:
        app.logger.error(f'Order creation error: {e}')
        return jsonify({'error': 'فشل في إنشاء الطلب', 'details': str(e)}), 500

    return jsonify({'success': True, 'orderId': str(order_id)})

# ========== لوحة الإدارة: الدخول ==========

@app.route('/api/admin/login', methods=['POST'])
def admin_login():
    data = request.get_json(silent=True) or {}
    email = (data.get('email') or '').strip()
    password = data.get('password') or ''

    if not email or not password:
        return jsonify({'error': 'E-mail et mot de passe requis'}), 400

    admin = AdminUser.query.filter_by(email=email, is_active=True).first()
    if not admin or not admin.check_password(password):
        return jsonify({'error': 'Identifiants incorrects'}), 401

    admin.last_login = datetime.utcnow()
    db.session.commit()
    session['admin_id'] = admin.id
    app.logger.info(f'Admin {admin.email} logged in')

    return jsonify({'message': 'Connexion réussie', 'admin': admin.to_dict()})


@app.route('/api/admin/logout', methods=['POST'])
def admin_logout():
    session.pop('admin_id', None)
    return jsonify({'message': 'Déconnexion réussie'})


@app.route('/api/admin/me', methods=['GET'])
@admin_required
def admin_me():
    return jsonify({'admin': db.session.get(AdminUser, session['admin_id']).to_dict()})

# ========== لوحة الإدارة: المنتجات ==========

def _product_values(data, partial=False):
    """قراءة حقول المنتج من الطلب؛ تعيد (القيم، رسالة الخطأ)"""
    values = {}
    if 'name' in data or not partial:
        name = (data.get('name') or '').strip()
        if not name:
            return None, 'Nom requis'
        values['name'] = name
        values['slug'] = slugify(name)
    if 'price' in data or not partial:
        try:
            price = float(data.get('price'))
        except (TypeError, ValueError):
            return None, 'Prix invalide'
        if price < 0:
            return None, 'Prix invalide'
        values['price'] = price
    if 'stock' in data:
        try:
            stock = int(data.get('stock'))
        except (TypeError, ValueError):
            return None, 'Stock invalide'
        if stock < 0:
            return None, 'Stock invalide'
        values['stock'] = stock
    if 'category_id' in data:
        category_id = to_int(data.get('category_id'))
        if category_id is not None and not db.session.get(Category, category_id):
            return None, 'Catégorie introuvable'
        values['category_id'] = category_id
    for key in ('description', 'image'):
        if key in data:
            values[key] = data.get(key) or None
    if 'is_active' in data:
        values['is_active'] = bool(data.get('is_active'))
    return values, None


@app.route('/api/admin/products', methods=['GET'])
@admin_required
def admin_list_products():
    products = Product.query.order_by(Product.created_at.desc(), Product.id.desc()).all()
    return jsonify([product.to_dict() for product in products])


@app.route('/api/admin/products', methods=['POST'])
@admin_required
def admin_create_product():
    values, error = _product_values(request.get_json(silent=True) or {})
    if error:
        return jsonify({'error': error}), 400
    product = Product(**values)
    db.session.add(product)
    db.session.commit()
    data_cache.clear()
    return jsonify({'message': 'Produit ajouté', 'product': product.to_dict()}), 201


@app.route('/api/admin/products/<int:product_id>', methods=['PUT'])
@admin_required
def admin_update_product(product_id):
    product = db.session.get(Product, product_id)
    if not product:
        return jsonify({'error': 'Produit introuvable'}), 404
    values, error = _product_values(request.get_json(silent=True) or {}, partial=True)
    if error:
        return jsonify({'error': error}), 400
    for key, value in values.items():
        setattr(product, key, value)
    db.session.commit()
    data_cache.clear()
    return jsonify({'message': 'Produit mis à jour', 'product': product.to_dict()})


@app.route('/api/admin/products/<int:product_id>', methods=['DELETE'])
@admin_required
def admin_delete_product(product_id):
    product = db.session.get(Product, product_id)
    if not product:
        return jsonify({'error': 'Produit introuvable'}), 404
    # les lignes de commande gardent le nom et le prix
    OrderItem.query.filter_by(product_id=product.id).update({'product_id': None})
    db.session.delete(product)
    db.session.commit()
    data_cache.clear()
    return jsonify({'message': 'Produit supprimé'})

# ========== لوحة الإدارة: الفئات ونماذج الخيارات ==========

def _schema_from_request(data):
    """قراءة نموذج الخيارات من الطلب مع توليد معرفات للحقول الجديدة"""
    schema = FormSchema.from_json(data.get('form_schema'))
    for index, field in enumerate(schema.fields):
        if not field.id:
            field.id = f'{new_field_id()}_{index}'
    return schema, schema_errors(schema)


@app.route('/api/admin/categories', methods=['GET'])
@admin_required
def admin_list_categories():
    records = category_records()
    options = flatten_indented(build_tree(records))
    for option in options:
        option['label'] = indented_label(option)
    return jsonify({
        'tree': [node.to_dict() for node in build_tree(records)],
        'categories': [c.to_dict() for c in records],
        'options': options,
        'integrity': integrity_report(records),
    })


@app.route('/api/admin/categories', methods=['POST'])
@admin_required
def admin_create_category():
    data = request.get_json(silent=True) or {}
    name = (data.get('name') or '').strip()
    if not name:
        return jsonify({'error': 'Nom requis'}), 400

    parent_id = to_int(data.get('parent_id'))
    if parent_id is not None and not db.session.get(Category, parent_id):
        return jsonify({'error': 'Catégorie parente introuvable'}), 400

    schema, errors = _schema_from_request(data)
    if errors:
        return jsonify({'error': 'Formulaire invalide', 'errors': errors}), 400

    category = Category(name=name, slug=slugify(name), image=data.get('image') or None, parent_id=parent_id)
    category.schema = schema
    db.session.add(category)
    db.session.commit()
    data_cache.clear()
    return jsonify({'message': 'Catégorie ajoutée', 'category': category.to_dict()}), 201


@app.route('/api/admin/categories/<int:category_id>', methods=['PUT'])
@admin_required
def admin_update_category(category_id):
    category = db.session.get(Category, category_id)
    if not category:
        return jsonify({'error': 'Catégorie introuvable'}), 404
    data = request.get_json(silent=True) or {}

    if 'name' in data:
        name = (data.get('name') or '').strip()
        if not name:
            return jsonify({'error': 'Nom requis'}), 400
        category.name = name
        category.slug = slugify(name)

    if 'parent_id' in data:
        parent_id = to_int(data.get('parent_id'))
        if parent_id is not None and not db.session.get(Category, parent_id):
            return jsonify({'error': 'Catégorie parente introuvable'}), 400
        if would_create_cycle(category_records(), category.id, parent_id):
            return jsonify({'error': 'Une catégorie ne peut pas être placée sous elle-même'}), 400
        category.parent_id = parent_id

    if 'image' in data:
        category.image = data.get('image') or None

    if 'form_schema' in data:
        schema, errors = _schema_from_request(data)
        if errors:
            return jsonify({'error': 'Formulaire invalide', 'errors': errors}), 400
        category.schema = schema

    db.session.commit()
    data_cache.clear()
    return jsonify({'message': 'Catégorie mise à jour', 'category': category.to_dict()})


@app.route('/api/admin/categories/<int:category_id>', methods=['DELETE'])
@admin_required
def admin_delete_category(category_id):
    """حذف الفئة مع كل الفئات المتفرعة منها"""
    category = db.session.get(Category, category_id)
    if not category:
        return jsonify({'error': 'Catégorie introuvable'}), 404

    try:
        subtree = build_tree(category_records(), parent_id=category.id)
    except CategoryCycleError as e:
        app.logger.error(f'Category cycle while deleting {category.id}: {e}')
        return jsonify({'error': 'Arborescence invalide', 'details': str(e)}), 409

    root = CategoryNode(id=category.id, name=category.name, parent_id=category.parent_id, children=subtree)
    ids = ids_in_scope([root], category.id)

    Product.query.filter(Product.category_id.in_(ids)).update({'category_id': None}, synchronize_session=False)
    # les enfants d'abord
    for cat_id in reversed(ids):
        db.session.delete(db.session.get(Category, cat_id))
        db.session.flush()
    db.session.commit()
    data_cache.clear()
    return jsonify({'message': 'Catégorie supprimée', 'deleted': ids})

# ========== لوحة الإدارة: الطلبات ==========

@app.route('/api/admin/orders', methods=['GET'])
@admin_required
def admin_list_orders():
    query = Order.query
    status = request.args.get('status')
    if status:
        query = query.filter_by(status=status)
    orders = query.order_by(Order.created_at.desc(), Order.id.desc()).all()
    return jsonify([order.to_dict(lang='fr') for order in orders])


@app.route('/api/admin/orders/<int:order_id>', methods=['GET'])
@admin_required
def admin_get_order(order_id):
    order = db.session.get(Order, order_id)
    if not order:
        return jsonify({'error': 'Commande introuvable'}), 404
    return jsonify(order.to_dict(lang='fr'))


@app.route('/api/admin/orders/<int:order_id>/status', methods=['PUT'])
@admin_required
def admin_update_order_status(order_id):
    order = db.session.get(Order, order_id)
    if not order:
        return jsonify({'error': 'Commande introuvable'}), 404
    status = (request.get_json(silent=True) or {}).get('status')
    if status not in ORDER_STATUSES:
        return jsonify({'error': 'Statut invalide'}), 400
    order.status = status
    db.session.commit()
    return jsonify({'message': 'Statut mis à jour', 'order': order.to_dict(lang='fr')})


@app.route('/api/admin/stats', methods=['GET'])
@admin_required
def admin_stats():
    """لوحة التحكم: عدد الطلبات والإيرادات وآخر الطلبات"""
    revenue = (db.session.query(db.func.sum(Order.total_price))
               .filter(Order.status.in_(REVENUE_STATUSES)).scalar())
    recent = Order.query.order_by(Order.created_at.desc(), Order.id.desc()).limit(5).all()
    return jsonify({
        'total_orders': Order.query.count(),
        'pending_orders': Order.query.filter_by(status='pending').count(),
        'total_revenue': revenue or 0,
        'total_products': Product.query.count(),
        'recent_orders': [order.to_dict(lang='fr') for order in recent]
    })

# ========== لوحة الإدارة: البانرات والإعدادات ==========

@app.route('/api/admin/banners', methods=['GET'])
@admin_required
def admin_list_banners():
    return jsonify([b.to_dict() for b in Banner.query.order_by(Banner.order).all()])


@app.route('/api/admin/banners', methods=['POST'])
@admin_required
def admin_create_banner():
    data = request.get_json(silent=True) or {}
    if not data.get('image'):
        return jsonify({'error': 'Image requise'}), 400
    banner = Banner(
        title=data.get('title'),
        image=data['image'],
        link=data.get('link'),
        order=int(data.get('order') or 0),
        is_active=bool(data.get('is_active', True))
    )
    db.session.add(banner)
    db.session.commit()
    data_cache.clear()
    return jsonify({'message': 'Bannière ajoutée', 'banner': banner.to_dict()}), 201


@app.route('/api/admin/banners/<int:banner_id>', methods=['PUT'])
@admin_required
def admin_update_banner(banner_id):
    banner = db.session.get(Banner, banner_id)
    if not banner:
        return jsonify({'error': 'Bannière introuvable'}), 404
    data = request.get_json(silent=True) or {}
    for key in ('title', 'image', 'link'):
        if key in data:
            setattr(banner, key, data[key])
    if 'order' in data:
        banner.order = int(data['order'] or 0)
    if 'is_active' in data:
        banner.is_active = bool(data['is_active'])
    db.session.commit()
    data_cache.clear()
    return jsonify({'message': 'Bannière mise à jour', 'banner': banner.to_dict()})


@app.route('/api/admin/banners/<int:banner_id>', methods=['DELETE'])
@admin_required
def admin_delete_banner(banner_id):
    banner = db.session.get(Banner, banner_id)
    if not banner:
        return jsonify({'error': 'Bannière introuvable'}), 404
    db.session.delete(banner)
    db.session.commit()
    data_cache.clear()
    return jsonify({'message': 'Bannière supprimée'})


@app.route('/api/admin/settings/<key>', methods=['GET'])
@admin_required
def admin_get_setting(key):
    setting = SiteSetting.query.filter_by(key=key).first()
    return jsonify({'key': key, 'value': setting.data if setting else {}})


@app.route('/api/admin/settings/<key>', methods=['PUT'])
@admin_required
def admin_put_setting(key):
    if key not in SETTING_KEYS:
        return jsonify({'error': 'Paramètre inconnu'}), 400
    value = (request.get_json(silent=True) or {}).get('value')
    if not isinstance(value, dict):
        return jsonify({'error': 'Valeur invalide'}), 400
    setting = SiteSetting.query.filter_by(key=key).first() or SiteSetting(key=key)
    setting.data = value
    db.session.add(setting)
    db.session.commit()
    data_cache.clear()
    return jsonify({'message': 'Paramètres enregistrés', 'key': key, 'value': setting.data})


# إنشاء الجداول عند تشغيل التطبيق لأول مرة
with app.app_context():
    db.create_all()
    if app.config['SEED_SAMPLE_DATA']:
        init_sample_data()

if __name__ == '__main__':
    app.run(debug=True, port=int(os.getenv('PORT', 5000)))
