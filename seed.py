"""
Seed the CMS database with an admin user, the default placements and a few
sample categories. Safe to run more than once.
"""
import os

from cms_api.auth import get_password_hash, verify_password
from cms_api.database import SessionLocal, engine, Base
from cms_api.schemas.auth import Role, UserCreate
from cms_api.schemas.taxonomy import CategoryCreate
from cms_api.services.registries import CategoryRegistry, PlacementRegistry
from cms_api.services.users import UserService
from cms_api.store import UNIQUE_FIELDS, SqlDocumentStore

# Create tables
Base.metadata.create_all(bind=engine)

SAMPLE_CATEGORIES = [
    CategoryCreate(name="Jobs", slug="jobs", description="Job listings and career opportunities", color="#3498db"),
    CategoryCreate(name="Technology", slug="technology", description="Latest technology news and trends", color="#e74c3c"),
    CategoryCreate(name="Career Tips", slug="career-tips", description="Advice for growing your career", color="#2ecc71"),
    CategoryCreate(name="Education", slug="education", description="Courses, training and learning", color="#f39c12"),
]

db = SessionLocal()
store = SqlDocumentStore(db, unique_fields=UNIQUE_FIELDS)

users = UserService(store, hash_password=get_password_hash, verify_password=verify_password)
admin_email = os.environ.get("CMS_ADMIN_EMAIL", "admin@example.com")
admin_password = os.environ.get("CMS_ADMIN_PASSWORD", "admin123")
if users.find_by_email(admin_email) is None:
    users.create(UserCreate(
        email=admin_email,
        password=admin_password,
        first_name="Admin",
        last_name="User",
        role=Role.ADMIN,
    ))
    print(f"  - Admin user {admin_email} created")
else:
    print(f"  - Admin user {admin_email} already exists")

placements_seeded = PlacementRegistry(store).seed_defaults()

categories = CategoryRegistry(store)
categories_seeded = 0
for category in SAMPLE_CATEGORIES:
    if store.find_one(categories.collection, {"slug": category.slug}) is None:
        categories.create(category)
        categories_seeded += 1

print("Database seeded successfully!")
print(f"  - {placements_seeded} placements")
print(f"  - {categories_seeded} categories")

db.close()
