import logging
from sqlalchemy.exc import SQLAlchemyError
from sirtis.core.config import settings
from sirtis.database import SessionLocal
from sirtis.models.user import User, UserRole
from sirtis.services import auth as auth_service

logger = logging.getLogger(__name__)

def init_system_data():
    """
    Creates the bootstrap administrator when BOOTSTRAP_ADMIN_EMAIL and
    BOOTSTRAP_ADMIN_PASSWORD are set and no such user exists yet.
    """
    email = settings.bootstrap_admin_email
    password = settings.bootstrap_admin_password
    if not email or not password:
        logger.info("System initialization check: no bootstrap administrator configured.")
        return

    db = SessionLocal()
    try:
        existing_admin = db.query(User).filter(User.email == email).first()
        if existing_admin:
            logger.info(f"System initialization check: administrator {email} already present.")
            return

        admin_user = User(
            email=email,
            hashed_password=auth_service.get_password_hash(password),
            first_name="System",
            last_name="Administrator",
            role=UserRole.HR_ADMIN,
            is_active=True,
        )
        db.add(admin_user)
        db.commit()
        logger.info(f"✓ Created bootstrap administrator: {email}")
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Error during system initialization check: {str(e)}", exc_info=True)
    finally:
        db.close()
