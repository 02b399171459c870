import logging
import os
import re
from contextlib import asynccontextmanager
from typing import Any, Dict, Optional

from bson import ObjectId
from fastapi import Depends, FastAPI, HTTPException, Query, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pymongo.database import Database
from starlette.exceptions import HTTPException as StarletteHTTPException

import coupons
import database
import orders
from config import Settings, get_settings
from database import (
    ById,
    BySlug,
    LookupKey,
    create_document,
    get_documents,
    get_singleton,
    lookup_filter,
    paginate,
    parse_object_id,
    to_public,
    update_document,
    update_singleton,
    utcnow,
)
from email_templates import contact_acknowledgement, contact_reply
from errors import Conflict, NotFound, StoreError, ValidationFailed
from mailer import Mailer, build_mailer, send_best_effort, send_template
from schemas import (
    APPEARANCE_DEFAULTS,
    FAQ,
    GENERAL_DEFAULTS,
    AppearanceSettings,
    Category,
    CategoryUpdate,
    Contact,
    ContactInfo,
    ContactReply,
    ContactStatusUpdate,
    Coupon,
    CouponApplyRequest,
    CouponUpdate,
    CouponValidateRequest,
    FAQUpdate,
    GeneralSettings,
    HeroImage,
    HeroImageUpdate,
    NewsletterRequest,
    Order,
    OrderCreate,
    OrderStatusUpdate,
    Product,
    ProductUpdate,
)

settings = get_settings()
logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger("storefront")

API_VERSION = "1.0.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    if database.db is not None:
        database.ensure_indexes(database.db)
    else:
        logger.warning("DATABASE_URL is not set; data endpoints will answer 503")
    yield


app = FastAPI(title="Storefront API", version=API_VERSION, lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# -----------------
# Dependencies
# -----------------

_mailer: Optional[Mailer] = None


def get_db() -> Database:
    if database.db is None:
        raise HTTPException(status_code=503, detail="Database not configured")
    return database.db


def get_mailer() -> Mailer:
    global _mailer
    if _mailer is None:
        _mailer = build_mailer(settings)
    return _mailer


# -----------------
# Utility helpers
# -----------------

def ok(data: Any = None, message: Optional[str] = None, **extra: Any) -> Dict[str, Any]:
    body: Dict[str, Any] = {"success": True}
    if data is not None:
        body["data"] = to_public(data)
    if message:
        body["message"] = message
    body.update(extra)
    return body


def ok_page(page: Dict[str, Any]) -> Dict[str, Any]:
    return ok(
        page["data"],
        count=page["count"],
        total=page["total"],
        total_pages=page["total_pages"],
        current_page=page["current_page"],
    )


def slugify(name: str) -> str:
    return re.sub(r"[^a-z0-9]+", "-", name.lower()).strip("-")


def find_or_404(db: Database, collection: str, filter_dict: Dict[str, Any], label: str) -> Dict[str, Any]:
    doc = db[collection].find_one(filter_dict)
    if doc is None:
        raise NotFound(f"{label} not found")
    return doc


# -----------------
# Error envelope
# -----------------

@app.exception_handler(StoreError)
async def store_error_handler(request: Request, exc: StoreError):
    body: Dict[str, Any] = {"success": False, "message": exc.message}
    if exc.data:
        body["data"] = exc.data
    return JSONResponse(status_code=exc.status_code, content=body)


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(status_code=exc.status_code, content={"success": False, "message": str(exc.detail)})


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    errors = [
        {"field": ".".join(str(p) for p in err.get("loc", ())[1:]), "message": err.get("msg", "")}
        for err in exc.errors()
    ]
    summary = "; ".join(f"{e['field']}: {e['message']}" if e["field"] else e["message"] for e in errors)
    return JSONResponse(
        status_code=400,
        content={"success": False, "message": f"Validation failed: {summary}", "data": {"errors": errors}},
    )


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"success": False, "message": "Internal server error"})


# -----------------
# Service
# -----------------

@app.get("/")
def root():
    return {
        "name": settings.store_name + " API",
        "version": API_VERSION,
        "endpoints": {
            "products": "/api/products",
            "categories": "/api/categories",
            "orders": "/api/orders",
            "coupons": "/api/coupons",
        },
    }


@app.get("/api/health")
def health():
    return {"status": "OK", "message": "Server is running", "timestamp": utcnow().isoformat()}


@app.get("/test")
def test_database():
    response = {
        "backend": "✅ Running",
        "database": "❌ Not Available",
        "database_url": "✅ Set" if os.getenv("DATABASE_URL") else "❌ Not Set",
        "database_name": None,
        "connection_status": "Not Connected",
        "collections": [],
        "email_provider": settings.email_provider,
    }
    db = database.db
    if db is None:
        response["database"] = "⚠️  Available but not initialized"
        return response
    response["database"] = "✅ Available"
    response["database_name"] = db.name
    response["connection_status"] = "Connected"
    try:
        response["collections"] = db.list_collection_names()[:10]
        response["database"] = "✅ Connected & Working"
    except Exception as e:
        response["database"] = f"⚠️  Connected but Error: {str(e)[:50]}"
    return response


# -----------------
# Orders
# -----------------

@app.post("/api/orders", status_code=201)
def create_order(
    payload: OrderCreate,
    db: Database = Depends(get_db),
    mailer: Mailer = Depends(get_mailer),
    config: Settings = Depends(get_settings),
):
    order = orders.create_order(db, payload, mailer, config)
    return ok(order)


@app.get("/api/orders")
def list_orders(
    status: Optional[str] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    db: Database = Depends(get_db),
):
    return ok_page(orders.list_orders(db, status, page, limit))


@app.get("/api/orders/myorders")
def my_orders(email: str = Query(..., min_length=3), db: Database = Depends(get_db)):
    docs = orders.list_customer_orders(db, email)
    return ok(docs, count=len(docs))


@app.get("/api/orders/{order_number}")
def get_order(order_number: str, db: Database = Depends(get_db)):
    return ok(orders.get_order(db, order_number))


@app.put("/api/orders/{order_number}")
def update_order_status(
    order_number: str,
    payload: OrderStatusUpdate,
    db: Database = Depends(get_db),
    mailer: Mailer = Depends(get_mailer),
    config: Settings = Depends(get_settings),
):
    order = orders.update_order_status(db, order_number, payload, mailer, config)
    return ok(order, "Order status updated successfully")


# -----------------
# Coupons
# -----------------

@app.get("/api/coupons/check-active")
def check_active_coupons(db: Database = Depends(get_db)):
    return {"success": True, "has_active_coupons": coupons.has_active_coupons(db)}


@app.post("/api/coupons/validate")
def validate_coupon(
    payload: CouponValidateRequest,
    db: Database = Depends(get_db),
    config: Settings = Depends(get_settings),
):
    result = coupons.validate_coupon(db, payload.code, payload.order_total, currency_symbol=config.currency_symbol)
    return ok(result)


@app.get("/api/coupons/validate/{code}")
def validate_coupon_by_path(
    code: str,
    order_total: float = Query(0, ge=0),
    db: Database = Depends(get_db),
    config: Settings = Depends(get_settings),
):
    result = coupons.validate_coupon(db, code, order_total, currency_symbol=config.currency_symbol)
    return ok(result)


@app.post("/api/coupons/apply")
def apply_coupon(payload: CouponApplyRequest, db: Database = Depends(get_db)):
    return ok(coupons.apply_coupon(db, payload.code, payload.order_number))


@app.get("/api/coupons")
def list_coupons(db: Database = Depends(get_db)):
    docs = coupons.list_coupons(db)
    return ok(docs, count=len(docs))


@app.get("/api/coupons/{coupon_id}")
def get_coupon(coupon_id: str, db: Database = Depends(get_db)):
    return ok(coupons.get_coupon(db, parse_object_id(coupon_id, "coupon id")))


@app.post("/api/coupons", status_code=201)
def create_coupon(payload: Coupon, db: Database = Depends(get_db)):
    return ok(coupons.create_coupon(db, payload))


@app.put("/api/coupons/{coupon_id}")
def update_coupon(coupon_id: str, payload: CouponUpdate, db: Database = Depends(get_db)):
    return ok(coupons.update_coupon(db, parse_object_id(coupon_id, "coupon id"), payload))


@app.delete("/api/coupons/{coupon_id}")
def delete_coupon(coupon_id: str, db: Database = Depends(get_db)):
    coupons.delete_coupon(db, parse_object_id(coupon_id, "coupon id"))
    return ok(message="Coupon deleted successfully")


@app.patch("/api/coupons/{coupon_id}/toggle")
def toggle_coupon(coupon_id: str, db: Database = Depends(get_db)):
    return ok(coupons.toggle_coupon(db, parse_object_id(coupon_id, "coupon id")))


# -----------------
# Catalog: products
# -----------------

PRODUCT_ORDER = [("is_featured", -1), ("created_at", -1), ("_id", -1)]
# single-segment paths under /api/products that are not product ids
RESERVED_PRODUCT_IDS = frozenset({"hot"})


def _category_ref(db: Database, raw_id: str) -> Dict[str, Any]:
    category = find_or_404(db, "category", {"_id": parse_object_id(raw_id, "category id")}, "Category")
    return {"category": category["_id"], "category_name": category["name"]}


def _product(db: Database, key: LookupKey) -> Dict[str, Any]:
    return find_or_404(db, "product", lookup_filter(key, slug_field="product_id"), "Product")


@app.get("/api/products")
def list_products(
    category: Optional[str] = None,
    product_type: Optional[str] = None,
    search: Optional[str] = None,
    is_featured: bool = False,
    is_hot: bool = False,
    show_all: bool = False,
    db: Database = Depends(get_db),
):
    query: Dict[str, Any] = {}
    if not show_all:
        query["is_active"] = True
    if category:
        query["category"] = parse_object_id(category, "category id")
    if product_type:
        query["product_type"] = product_type
    if is_featured:
        query["is_featured"] = True
    if is_hot:
        query["is_hot"] = True
    if search:
        pattern = re.escape(search)
        query["$or"] = [
            {"name": {"$regex": pattern, "$options": "i"}},
            {"description": {"$regex": pattern, "$options": "i"}},
        ]
    docs = get_documents(db, "product", query, sort=PRODUCT_ORDER)
    return ok(docs, count=len(docs))


@app.get("/api/products/hot")
def hot_products(db: Database = Depends(get_db)):
    docs = get_documents(db, "product", {"is_active": True, "is_hot": True},
                         sort=[("created_at", -1), ("_id", -1)], limit=12)
    return ok(docs, count=len(docs))


@app.get("/api/products/category/{slug}")
def products_by_category(slug: str, db: Database = Depends(get_db)):
    category = find_or_404(db, "category", {"slug": slug, "is_active": True}, "Category")
    docs = get_documents(db, "product", {"category": category["_id"], "is_active": True}, sort=PRODUCT_ORDER)
    summary = {k: category.get(k) for k in ("name", "slug", "description", "image")}
    return ok(docs, count=len(docs), category=summary)


@app.get("/api/products/categories/{product_type}")
def product_type_categories(product_type: str, db: Database = Depends(get_db)):
    ids = db["product"].distinct("category", {"product_type": product_type, "is_active": True})
    return ok(ids, count=len(ids))


@app.get("/api/products/by-id/{product_oid}")
def get_product_by_id(product_oid: str, db: Database = Depends(get_db)):
    return ok(_product(db, ById(parse_object_id(product_oid, "product id"))))


@app.get("/api/products/{product_id}")
def get_product(product_id: str, db: Database = Depends(get_db)):
    return ok(_product(db, BySlug(product_id)))


@app.post("/api/products", status_code=201)
def create_product(payload: Product, db: Database = Depends(get_db)):
    if payload.product_id.lower() in RESERVED_PRODUCT_IDS:
        raise ValidationFailed(f"Product id {payload.product_id} is reserved")
    if db["product"].find_one({"product_id": payload.product_id}) is not None:
        raise Conflict(f"Product {payload.product_id} already exists")
    doc = payload.model_dump()
    doc.update(_category_ref(db, payload.category))
    new_id = create_document(db, "product", doc)
    logger.info("Product %s created", payload.product_id)
    return ok(db["product"].find_one({"_id": ObjectId(new_id)}))


@app.put("/api/products/{product_id}")
def update_product(product_id: str, payload: ProductUpdate, db: Database = Depends(get_db)):
    existing = _product(db, BySlug(product_id))
    changes = payload.model_dump(exclude_unset=True)
    if "category" in changes:
        changes.update(_category_ref(db, changes["category"]))
    return ok(update_document(db, "product", {"_id": existing["_id"]}, changes))


@app.delete("/api/products/{product_id}")
def delete_product(product_id: str, db: Database = Depends(get_db)):
    existing = _product(db, BySlug(product_id))
    db["product"].delete_one({"_id": existing["_id"]})
    return ok(message="Product deleted successfully")


# -----------------
# Catalog: categories
# -----------------

def _category(db: Database, key: LookupKey, active_only: bool = False) -> Dict[str, Any]:
    query = lookup_filter(key)
    if active_only:
        query["is_active"] = True
    category = find_or_404(db, "category", query, "Category")
    category["products_count"] = db["product"].count_documents({"category": category["_id"], "is_active": True})
    return category


@app.get("/api/categories")
def list_categories(
    product_type: Optional[str] = None,
    is_featured: bool = False,
    show_all: bool = False,
    db: Database = Depends(get_db),
):
    query: Dict[str, Any] = {}
    if not show_all:
        query["is_active"] = True
    if product_type:
        query["product_type"] = product_type
    if is_featured:
        query["is_featured"] = True
    docs = get_documents(db, "category", query, sort=[("display_order", 1), ("name", 1)])
    return ok(docs, count=len(docs))


@app.get("/api/categories/featured/with-products")
def featured_categories(db: Database = Depends(get_db)):
    result = []
    for category in get_documents(db, "category", {"is_active": True, "is_featured": True},
                                  sort=[("display_order", 1)]):
        category["products"] = get_documents(
            db, "product", {"category": category["_id"], "is_active": True},
            sort=[("is_hot", -1), ("is_featured", -1), ("created_at", -1)], limit=4,
        )
        result.append(category)
    return ok(result, count=len(result))


@app.get("/api/categories/by-id/{category_id}")
def get_category_by_id(category_id: str, db: Database = Depends(get_db)):
    return ok(_category(db, ById(parse_object_id(category_id, "category id"))))


@app.get("/api/categories/{slug}")
def get_category(slug: str, db: Database = Depends(get_db)):
    return ok(_category(db, BySlug(slug), active_only=True))


@app.post("/api/categories", status_code=201)
def create_category(payload: Category, db: Database = Depends(get_db)):
    slug = slugify(payload.name)
    if db["category"].find_one({"$or": [{"name": payload.name}, {"slug": slug}]}) is not None:
        raise Conflict(f"Category {payload.name} already exists")
    new_id = create_document(db, "category", {**payload.model_dump(), "slug": slug})
    return ok(db["category"].find_one({"_id": ObjectId(new_id)}))


@app.put("/api/categories/by-id/{category_id}")
def update_category(category_id: str, payload: CategoryUpdate, db: Database = Depends(get_db)):
    oid = parse_object_id(category_id, "category id")
    existing = find_or_404(db, "category", {"_id": oid}, "Category")
    changes = payload.model_dump(exclude_unset=True)
    if changes.get("name") and changes["name"] != existing["name"]:
        changes["slug"] = slugify(changes["name"])
        clash = db["category"].find_one({"_id": {"$ne": oid}, "$or": [{"name": changes["name"]}, {"slug": changes["slug"]}]})
        if clash is not None:
            raise Conflict(f"Category {changes['name']} already exists")
        db["product"].update_many({"category": oid}, {"$set": {"category_name": changes["name"]}})
    return ok(update_document(db, "category", {"_id": oid}, changes))


@app.delete("/api/categories/by-id/{category_id}")
def delete_category(category_id: str, db: Database = Depends(get_db)):
    oid = parse_object_id(category_id, "category id")
    find_or_404(db, "category", {"_id": oid}, "Category")
    products_count = db["product"].count_documents({"category": oid})
    if products_count > 0:
        raise Conflict(
            f"Cannot delete category. It has {products_count} products. "
            "Please reassign or delete products first.",
            data={"products_count": products_count},
        )
    db["category"].delete_one({"_id": oid})
    return ok(message="Category deleted successfully")


# -----------------
# Hero images
# -----------------

@app.get("/api/hero-images")
def list_hero_images(db: Database = Depends(get_db)):
    return ok(get_documents(db, "hero_image", {"is_active": True}, sort=[("order", 1)]))


@app.get("/api/hero-images/admin")
def list_hero_images_admin(db: Database = Depends(get_db)):
    return ok(get_documents(db, "hero_image", {}, sort=[("order", 1)]))


@app.get("/api/hero-images/{image_id}")
def get_hero_image(image_id: str, db: Database = Depends(get_db)):
    return ok(find_or_404(db, "hero_image", {"_id": parse_object_id(image_id)}, "Hero image"))


@app.post("/api/hero-images", status_code=201)
def create_hero_image(payload: HeroImage, db: Database = Depends(get_db)):
    new_id = create_document(db, "hero_image", payload)
    return ok(db["hero_image"].find_one({"_id": ObjectId(new_id)}))


@app.put("/api/hero-images/{image_id}")
def update_hero_image(image_id: str, payload: HeroImageUpdate, db: Database = Depends(get_db)):
    updated = update_document(db, "hero_image", {"_id": parse_object_id(image_id)},
                              payload.model_dump(exclude_unset=True))
    if updated is None:
        raise NotFound("Hero image not found")
    return ok(updated)


@app.delete("/api/hero-images/{image_id}")
def delete_hero_image(image_id: str, db: Database = Depends(get_db)):
    if db["hero_image"].delete_one({"_id": parse_object_id(image_id)}).deleted_count == 0:
        raise NotFound("Hero image not found")
    return ok(message="Hero image deleted successfully")


@app.patch("/api/hero-images/{image_id}/toggle-status")
def toggle_hero_image(image_id: str, db: Database = Depends(get_db)):
    oid = parse_object_id(image_id)
    image = find_or_404(db, "hero_image", {"_id": oid}, "Hero image")
    return ok(update_document(db, "hero_image", {"_id": oid}, {"is_active": not image.get("is_active", True)}))


# -----------------
# Contacts
# -----------------

CONTACT_STATUSES = ("new", "read", "replied", "archived")


@app.post("/api/contacts", status_code=201)
def submit_contact(
    payload: Contact,
    db: Database = Depends(get_db),
    mailer: Mailer = Depends(get_mailer),
    config: Settings = Depends(get_settings),
):
    doc = {**payload.model_dump(), "status": "new", "replied": False}
    new_id = create_document(db, "contact", doc)
    contact = db["contact"].find_one({"_id": ObjectId(new_id)})
    send_best_effort(mailer, contact["email"], contact_acknowledgement(contact, config), config)
    return ok(contact, "Message sent successfully! We will get back to you soon.")


@app.get("/api/contacts")
def list_contacts(
    status: Optional[str] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    db: Database = Depends(get_db),
):
    query = {"status": status} if status else {}
    return ok_page(paginate(db, "contact", query, [("created_at", -1), ("_id", -1)], page, limit))


@app.get("/api/contacts/stats")
def contact_stats(db: Database = Depends(get_db)):
    stats = {"total": db["contact"].count_documents({})}
    for status in CONTACT_STATUSES:
        stats[status] = db["contact"].count_documents({"status": status})
    return ok(stats)


@app.get("/api/contacts/{contact_id}")
def get_contact(contact_id: str, db: Database = Depends(get_db)):
    oid = parse_object_id(contact_id, "contact id")
    contact = find_or_404(db, "contact", {"_id": oid}, "Contact")
    if contact.get("status") == "new":
        contact = update_document(db, "contact", {"_id": oid}, {"status": "read"})
    return ok(contact)


@app.put("/api/contacts/{contact_id}/status")
def update_contact_status(contact_id: str, payload: ContactStatusUpdate, db: Database = Depends(get_db)):
    updated = update_document(db, "contact", {"_id": parse_object_id(contact_id, "contact id")},
                              {"status": payload.status})
    if updated is None:
        raise NotFound("Contact not found")
    return ok(updated, "Contact status updated")


@app.post("/api/contacts/{contact_id}/reply")
def reply_to_contact(
    contact_id: str,
    payload: ContactReply,
    db: Database = Depends(get_db),
    mailer: Mailer = Depends(get_mailer),
    config: Settings = Depends(get_settings),
):
    oid = parse_object_id(contact_id, "contact id")
    contact = find_or_404(db, "contact", {"_id": oid}, "Contact")
    # unlike the acknowledgement, a failed reply is reported to the caller
    send_template(mailer, contact["email"], contact_reply(contact, payload.reply_message, config), config)
    updated = update_document(db, "contact", {"_id": oid}, {
        "replied": True,
        "reply_message": payload.reply_message,
        "replied_at": utcnow(),
        "status": "replied",
    })
    return ok(updated, "Reply sent successfully")


@app.delete("/api/contacts/{contact_id}")
def delete_contact(contact_id: str, db: Database = Depends(get_db)):
    if db["contact"].delete_one({"_id": parse_object_id(contact_id, "contact id")}).deleted_count == 0:
        raise NotFound("Contact not found")
    return ok(message="Contact deleted successfully")


# -----------------
# Newsletter
# -----------------

@app.post("/api/newsletter/subscribe")
def subscribe(payload: NewsletterRequest, response: Response, db: Database = Depends(get_db)):
    existing = db["newsletter"].find_one({"email": payload.email})
    if existing is not None:
        if existing.get("is_active"):
            raise Conflict("This email is already subscribed")
        updated = update_document(db, "newsletter", {"_id": existing["_id"]},
                                  {"is_active": True, "subscribed_at": utcnow()})
        return ok(updated, "Welcome back! Your subscription has been reactivated")

    new_id = create_document(db, "newsletter", {"email": payload.email, "is_active": True, "subscribed_at": utcnow()})
    response.status_code = 201
    return ok(db["newsletter"].find_one({"_id": ObjectId(new_id)}), "Successfully subscribed to newsletter!")


@app.post("/api/newsletter/unsubscribe")
def unsubscribe(payload: NewsletterRequest, db: Database = Depends(get_db)):
    existing = db["newsletter"].find_one({"email": payload.email})
    if existing is None:
        raise NotFound("Email not found in our newsletter list")
    update_document(db, "newsletter", {"_id": existing["_id"]}, {"is_active": False})
    return ok(message="Successfully unsubscribed from newsletter")


@app.get("/api/newsletter")
def list_subscribers(
    is_active: Optional[bool] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=500),
    db: Database = Depends(get_db),
):
    query = {} if is_active is None else {"is_active": is_active}
    return ok_page(paginate(db, "newsletter", query, [("subscribed_at", -1), ("_id", -1)], page, limit))


@app.delete("/api/newsletter/{subscriber_id}")
def delete_subscriber(subscriber_id: str, db: Database = Depends(get_db)):
    if db["newsletter"].delete_one({"_id": parse_object_id(subscriber_id, "subscriber id")}).deleted_count == 0:
        raise NotFound("Subscriber not found")
    return ok(message="Subscriber deleted successfully")


# -----------------
# Site settings
# -----------------

def _contact_info_defaults(config: Settings) -> Dict[str, Any]:
    return {"email": config.email_from, "phone": "", "whatsapp": "", "address": "", "tiktok": "", "instagram": ""}


@app.get("/api/settings/contact")
def get_contact_info(db: Database = Depends(get_db), config: Settings = Depends(get_settings)):
    return ok(get_singleton(db, "contact_info", _contact_info_defaults(config)))


@app.put("/api/settings/contact")
def update_contact_info(payload: ContactInfo, db: Database = Depends(get_db)):
    return ok(update_singleton(db, "contact_info", payload.model_dump(exclude_unset=True)))


@app.get("/api/settings/faqs")
def list_faqs(db: Database = Depends(get_db)):
    return ok(get_documents(db, "faq", {}, sort=[("order", 1), ("created_at", -1)]))


@app.get("/api/settings/faqs/{faq_id}")
def get_faq(faq_id: str, db: Database = Depends(get_db)):
    return ok(find_or_404(db, "faq", {"_id": parse_object_id(faq_id, "FAQ id")}, "FAQ"))


@app.post("/api/settings/faqs", status_code=201)
def create_faq(payload: FAQ, db: Database = Depends(get_db)):
    new_id = create_document(db, "faq", payload)
    return ok(db["faq"].find_one({"_id": ObjectId(new_id)}))


@app.put("/api/settings/faqs/{faq_id}")
def update_faq(faq_id: str, payload: FAQUpdate, db: Database = Depends(get_db)):
    updated = update_document(db, "faq", {"_id": parse_object_id(faq_id, "FAQ id")},
                              payload.model_dump(exclude_unset=True))
    if updated is None:
        raise NotFound("FAQ not found")
    return ok(updated)


@app.delete("/api/settings/faqs/{faq_id}")
def delete_faq(faq_id: str, db: Database = Depends(get_db)):
    if db["faq"].delete_one({"_id": parse_object_id(faq_id, "FAQ id")}).deleted_count == 0:
        raise NotFound("FAQ not found")
    return ok(message="FAQ deleted successfully")


@app.get("/api/settings/appearance")
def get_appearance(db: Database = Depends(get_db)):
    return ok(get_singleton(db, "appearance_settings", APPEARANCE_DEFAULTS))


@app.put("/api/settings/appearance")
def update_appearance(payload: AppearanceSettings, db: Database = Depends(get_db)):
    return ok(update_singleton(db, "appearance_settings", payload.model_dump(exclude_unset=True)))


@app.get("/api/settings/general")
def get_general(db: Database = Depends(get_db)):
    return ok(get_singleton(db, "general_settings", GENERAL_DEFAULTS))


@app.put("/api/settings/general")
def update_general(payload: GeneralSettings, db: Database = Depends(get_db)):
    return ok(update_singleton(db, "general_settings", payload.model_dump(exclude_unset=True)))


# -----------------
# Schema Explorer
# -----------------
@app.get("/schema")
def schema():
    return {
        "order": Order.model_json_schema(),
        "coupon": Coupon.model_json_schema(),
        "product": Product.model_json_schema(),
        "category": Category.model_json_schema(),
        "contact": Contact.model_json_schema(),
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=settings.port)
