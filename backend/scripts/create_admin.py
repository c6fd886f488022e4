"""
Create Admin Script

Creates a staff account, or resets the password and role of an existing one.

Usage:
    python scripts/create_admin.py admin@example.com --first-name Ada --role admin
"""
import argparse
import getpass
import sys
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from sqlalchemy.orm import Session

from shopdesk.core.security import create_access_token, hash_password
from shopdesk.core.status_config import STAFF_ACCOUNT_TYPES
from shopdesk.db.session import SessionLocal
from shopdesk.models.user import User


def create_admin(db: Session, email: str, password: str, role: str = "admin",
                 first_name: str = None, last_name: str = None) -> User:
    """Create or update a staff user. Returns the saved user."""
    user = db.query(User).filter(User.email == email.lower()).first()
    if user:
        print(f"User {email} already exists, updating password and role...")
    else:
        user = User(email=email.lower())
        db.add(user)

    user.password_hash = hash_password(password)
    user.account_type = role
    user.status = "active"
    if first_name:
        user.first_name = first_name
    if last_name:
        user.last_name = last_name

    db.commit()
    db.refresh(user)
    return user


def main():
    parser = argparse.ArgumentParser(description="Create or update a staff account")
    parser.add_argument("email")
    parser.add_argument("--role", choices=STAFF_ACCOUNT_TYPES, default="admin")
    parser.add_argument("--first-name")
    parser.add_argument("--last-name")
    parser.add_argument("--print-token", action="store_true", help="Print an access token for the account")
    args = parser.parse_args()

    password = getpass.getpass("Password: ")
    if len(password) < 8:
        print("Password must be at least 8 characters")
        sys.exit(1)
    if password != getpass.getpass("Confirm password: "):
        print("Passwords do not match")
        sys.exit(1)

    db: Session = SessionLocal()
    try:
        user = create_admin(db, args.email, password, args.role, args.first_name, args.last_name)
        print(f"✅ {user.account_type} account ready: {user.email} (id {user.id})")
        if args.print_token:
            print(create_access_token(user.id))
    finally:
        db.close()


if __name__ == "__main__":
    main()
