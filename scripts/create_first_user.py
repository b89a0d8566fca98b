import os
import secrets
import sys

# Add current directory to path
sys.path.append(os.getcwd())

from nulltasker.core.config import settings
from nulltasker.core.constants import validate_password_rules
from nulltasker.core.security import get_password_hash
from nulltasker.db.init_db import BOOTSTRAP_ADMIN_ID, create_bootstrap_admin
from nulltasker.db.session import open_storage


def create_initial_user():
    print("--- Initial User Creation ---")

    email = os.environ.get("ADMIN_EMAIL", "admin@example.com")
    password = os.environ.get("ADMIN_PASSWORD")
    display_name = os.environ.get("ADMIN_DISPLAY_NAME", "Administrator")
    generated = password is None
    if generated:
        # token_urlsafe may lack a digit or a case; the suffix guarantees both
        password = secrets.token_urlsafe(12).replace("-", "_") + "Aa1"

    try:
        validate_password_rules(password)
    except ValueError as exc:
        print(f"ADMIN_PASSWORD rejected: {exc}")
        sys.exit(1)

    storage = open_storage(settings)
    try:
        user = create_bootstrap_admin(storage, email, get_password_hash(password), display_name)
    finally:
        storage.close()

    if user is None:
        print(f"User '{BOOTSTRAP_ADMIN_ID}' or email {email} already exists.")
        return

    print("Initial user created successfully!")
    print(f"Id: {user.id}")
    print(f"Email: {email}")
    if generated:
        print(f"Password: {password}")
    print(f"Role: {user.role.value}")


if __name__ == "__main__":
    create_initial_user()
