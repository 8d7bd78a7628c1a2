"""
Seed a demo cooperative: staff, members, fee types, a product, productions and a loan.
"""
import sys
from pathlib import Path

# Add project root to Python path
project_root = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(project_root))

from coopay.db.base import SessionLocal
from coopay.models.cooperative import Cooperative
from coopay.models.fees import FeeType
from coopay.models.user import User, UserRoleEnum
from coopay.services.auth import create_user
from coopay.services.cash import deposit_cash
from coopay.services.cooperative import create_cooperative
from coopay.services.fees import create_fee_type
from coopay.services.loan import create_loan
from coopay.services.production import create_product, record_production
from decimal import Decimal

COOPERATIVE_NAME = "Demo Coffee Cooperative"


def seed_cooperative(db):
    """Seed the cooperative, its cash and its active season."""
    print("Seeding cooperative...")
    cooperative = db.query(Cooperative).filter(Cooperative.name == COOPERATIVE_NAME).first()
    if not cooperative:
        cooperative = create_cooperative(db, COOPERATIVE_NAME, "Huye")
        deposit_cash(db, cooperative.id, Decimal("5000000"))
    print("Cooperative seeded")
    return cooperative


def seed_users(db, cooperative):
    """Seed a manager, an accountant and a few members."""
    print("Seeding users...")
    users = [
        {"names": "Demo Manager", "phone_number": "0781000001", "role": UserRoleEnum.MANAGER},
        {"names": "Demo Accountant", "phone_number": "0781000002", "role": UserRoleEnum.ACCOUNTANT},
        {"names": "Alice Uwase", "phone_number": "0782000001", "role": UserRoleEnum.MEMBER},
        {"names": "Jean Habimana", "phone_number": "0782000002", "role": UserRoleEnum.MEMBER},
    ]
    members = []
    for user_data in users:
        user = db.query(User).filter(User.phone_number == user_data["phone_number"]).first()
        if not user:
            user = create_user(db=db, password="password123", cooperative_id=cooperative.id, **user_data)
        if user.role == UserRoleEnum.MEMBER:
            members.append(user)
    print("Users seeded")
    return members


def seed_ledgers(db, cooperative, members):
    """Seed fee types (auto-applied), deliveries and a loan."""
    print("Seeding fee types, productions and loans...")
    if db.query(FeeType).filter(FeeType.cooperative_id == cooperative.id).first():
        print("Ledgers already seeded")
        return
    create_fee_type(db, cooperative.id, "Membership", Decimal("5000"), is_per_season=False)
    create_fee_type(db, cooperative.id, "Season contribution", Decimal("2000"), is_per_season=True)
    product = create_product(db, cooperative.id, "Coffee cherries", Decimal("450"))
    for member in members:
        record_production(db, member.id, cooperative.id, product.id, quantity=120)
    create_loan(db, members[0].id, cooperative.id, Decimal("20000"), interest_rate=Decimal("5"))
    print("Ledgers seeded")


if __name__ == "__main__":
    db = SessionLocal()
    try:
        cooperative = seed_cooperative(db)
        members = seed_users(db, cooperative)
        seed_ledgers(db, cooperative, members)
        print("\nSeed data complete!")
    except Exception as e:
        db.rollback()
        print(f"Error seeding data: {e}")
        raise
    finally:
        db.close()
