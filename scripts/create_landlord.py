"""
python -m scripts.create_landlord admin@storeflow.app 'a-strong-password' "Platform Admin"
"""

import sys

sys.path.insert(0, ".")

from dotenv import load_dotenv
load_dotenv()

from app.database import SessionLocal
from app.crud.user import user as user_crud
from app.models.user import UserRole
from app.core.logging_config import logger


def create_landlord(email: str, password: str, name: str = "Landlord"):
    """Create the platform operator account, which belongs to no tenant."""
    db = SessionLocal()

    try:
        if user_crud.get_by_email(db, email):
            print(f"User {email} already exists")
            return
        user = user_crud.create(
            db,
            email=email,
            password=password,
            name=name,
            role=UserRole.landlord,
            tenant_id=None,
        )
        logger.info(f"Landlord created: id={user.id}")
        print(f"Created landlord {user.email} (id={user.id})")
    except Exception as e:
        db.rollback()
        print(f"Error: {e}")
        raise
    finally:
        db.close()


if __name__ == "__main__":
    if len(sys.argv) < 3:
        print("usage: python -m scripts.create_landlord EMAIL PASSWORD [NAME]")
        sys.exit(1)
    create_landlord(*sys.argv[1:4])
