import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ["ENABLE_SCHEDULER"] = "false"

from datetime import datetime, timedelta
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from coopay.core import config
from coopay.core.security import get_password_hash
from coopay.db.base import get_db
from coopay.main import app
from coopay.models import (
    Base,
    Cooperative,
    CooperativeCash,
    Fee,
    FeeStatus,
    FeeType,
    Loan,
    LoanStatus,
    Product,
    Production,
    ProductionPaymentStatus,
    Season,
    SeasonName,
    SeasonStatus,
    User,
    UserRoleEnum,
)
from coopay.services.auth import create_access_token_for_user

PASSWORD = "password123"
PASSWORD_HASH = get_password_hash(PASSWORD)


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db(engine):
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture(autouse=True)
def audit_dir(tmp_path, monkeypatch):
    monkeypatch.setattr(config, "LOGS_DIR", tmp_path / "logs")
    return tmp_path / "logs"


@pytest.fixture
def client(db):
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


class LedgerFactory:
    """Inserts ledger rows directly, with strictly increasing created_at."""

    def __init__(self, db):
        self.db = db
        self._clock = datetime(2026, 1, 1, 8, 0, 0)
        self._phone = 788000000

    def tick(self) -> datetime:
        self._clock += timedelta(minutes=1)
        return self._clock

    def cooperative(self, name="Kawa Cooperative", cash="1000000", season_name=SeasonName.SEASON_A, year=2026):
        coop = Cooperative(name=name, is_active=True)
        self.db.add(coop)
        self.db.flush()
        self.db.add(CooperativeCash(cooperative_id=coop.id, balance=Decimal(cash)))
        self.db.add(Season(cooperative_id=coop.id, name=season_name, year=year, status=SeasonStatus.ACTIVE))
        self.db.commit()
        self.db.refresh(coop)
        return coop

    def season(self, coop):
        return self.db.query(Season).filter(
            Season.cooperative_id == coop.id,
            Season.status == SeasonStatus.ACTIVE
        ).first()

    def user(self, coop, role=UserRoleEnum.MEMBER, names="Test Member"):
        self._phone += 1
        user = User(
            names=names,
            phone_number=f"0{self._phone}",
            password_hash=PASSWORD_HASH,
            role=role,
            cooperative_id=coop.id if coop is not None else None,
            is_active=True,
            created_at=self.tick(),
        )
        self.db.add(user)
        self.db.commit()
        self.db.refresh(user)
        return user

    def member(self, coop, names="Test Member"):
        return self.user(coop, UserRoleEnum.MEMBER, names)

    def fee_type(self, coop, name="Membership", amount="1000", is_per_season=False, auto_apply=False):
        fee_type = FeeType(
            cooperative_id=coop.id,
            name=name,
            amount=Decimal(amount),
            is_per_season=is_per_season,
            auto_apply_on_create=auto_apply,
        )
        self.db.add(fee_type)
        self.db.commit()
        return fee_type

    def fee(self, member, amount_owed, amount_paid="0", season=None, name=None):
        fee_type = self.fee_type(
            self.db.get(Cooperative, member.cooperative_id),
            name=name or f"Fee {self._clock.isoformat()}",
            amount=amount_owed,
        )
        fee = Fee(
            member_id=member.id,
            cooperative_id=member.cooperative_id,
            season_id=season.id if season else None,
            fee_type_id=fee_type.id,
            amount_owed=Decimal(amount_owed),
            amount_paid=Decimal(amount_paid),
            status=FeeStatus.UNPAID,
            created_at=self.tick(),
        )
        fee.refresh_status()
        self.db.add(fee)
        self.db.commit()
        self.db.refresh(fee)
        return fee

    def loan(self, member, amount_owed, amount_paid="0", season=None):
        loan = Loan(
            member_id=member.id,
            cooperative_id=member.cooperative_id,
            season_id=season.id if season else None,
            principal_amount=Decimal(amount_owed),
            interest_rate=Decimal("0"),
            amount_owed=Decimal(amount_owed),
            amount_paid=Decimal(amount_paid),
            status=LoanStatus.PENDING,
            created_at=self.tick(),
        )
        self.db.add(loan)
        self.db.commit()
        self.db.refresh(loan)
        return loan

    def production(self, member, total, season=None, quantity=1):
        coop = self.db.get(Cooperative, member.cooperative_id)
        season = season or self.season(coop)
        product = Product(cooperative_id=coop.id, product_name="Coffee", unit_price=Decimal(total) / quantity)
        self.db.add(product)
        self.db.flush()
        production = Production(
            member_id=member.id,
            cooperative_id=coop.id,
            season_id=season.id,
            product_id=product.id,
            quantity=quantity,
            unit_price=Decimal(total) / quantity,
            total_price=Decimal(total),
            payment_status=ProductionPaymentStatus.PENDING,
            created_at=self.tick(),
        )
        self.db.add(production)
        self.db.commit()
        self.db.refresh(production)
        return production


@pytest.fixture
def factory(db):
    return LedgerFactory(db)


@pytest.fixture
def coop(factory):
    return factory.cooperative()


@pytest.fixture
def member(factory, coop):
    return factory.member(coop)


@pytest.fixture
def manager(factory, coop):
    return factory.user(coop, UserRoleEnum.MANAGER, names="Coop Manager")


@pytest.fixture
def scenario(factory, coop, member):
    """Production 50000, unpaid fees 10000, loans 5000, no open payment."""
    factory.production(member, "50000")
    fee = factory.fee(member, "10000")
    loan = factory.loan(member, "5000")
    return {"coop": coop, "member": member, "fee": fee, "loan": loan}


@pytest.fixture
def auth_headers():
    def build(user, cooperative_id=None):
        headers = {"Authorization": f"Bearer {create_access_token_for_user(user)}"}
        if cooperative_id is not None:
            headers["x-cooperative-id"] = str(cooperative_id)
        return headers
    return build
