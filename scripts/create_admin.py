import argparse
import sys
import os
import logging
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

# Ensure we can import sirtis modules
sys.path.append(os.getcwd())

from sirtis.database import SessionLocal, init_db
from sirtis.models.user import User, UserRole
from sirtis.services.auth import get_password_hash

# Configure logging
logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")
logger = logging.getLogger(__name__)

def create_admin_user(email: str, password: str, role: UserRole = UserRole.HR_ADMIN) -> bool:
    init_db()
    db: Session = SessionLocal()
    try:
        existing_user = db.query(User).filter(User.email == email).first()
        if existing_user:
            logger.warning(f"Admin user '{email}' already exists.")
            return False

        admin_user = User(
            email=email,
            hashed_password=get_password_hash(password),
            first_name="System",
            last_name="Administrator",
            role=role,
            is_active=True,
        )
        db.add(admin_user)
        db.commit()

        logger.info(f"Admin user {email} created successfully. You can now login.")
        return True

    except SQLAlchemyError as e:
        logger.error(f"Error creating admin user: {e}")
        db.rollback()
        return False
    finally:
        db.close()

if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Create an administrator account.")
    parser.add_argument("email")
    parser.add_argument("password")
    parser.add_argument("--super", action="store_true", help="Create a SUPER_ADMIN instead of HR_ADMIN")
    args = parser.parse_args()
    created = create_admin_user(args.email, args.password, UserRole.SUPER_ADMIN if args.super else UserRole.HR_ADMIN)
    sys.exit(0 if created else 1)
