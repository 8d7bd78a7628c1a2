"""
Create a superadmin user.
Usage: python scripts/create_admin.py --phone 0780000000 --password admin123
"""
import sys
from pathlib import Path

# Add project root to Python path
project_root = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(project_root))

from coopay.core.exceptions import ValidationError
from coopay.db.base import SessionLocal
from coopay.models.user import UserRoleEnum
from coopay.services.auth import create_user


def create_admin(phone_number: str = "0780000000", password: str = "admin123", names: str = "Super Admin"):
    """Create a superadmin (no cooperative)."""
    db = SessionLocal()
    try:
        user = create_user(
            db=db,
            names=names,
            phone_number=phone_number,
            password=password,
            role=UserRoleEnum.SUPERADMIN
        )
        print("Superadmin created successfully!")
        print(f"   Phone: {user.phone_number}")
        print(f"   Password: {password}")
        print("\nPlease change the password after first login!")
    except ValidationError as e:
        print(f"Could not create superadmin: {e.message}")
    finally:
        db.close()


if __name__ == "__main__":
    import argparse

    parser = argparse.ArgumentParser(description="Create a superadmin user")
    parser.add_argument("--phone", default="0780000000", help="Phone number used to log in")
    parser.add_argument("--password", default="admin123", help="Password")
    parser.add_argument("--names", default="Super Admin", help="Display name")

    args = parser.parse_args()

    create_admin(phone_number=args.phone, password=args.password, names=args.names)
