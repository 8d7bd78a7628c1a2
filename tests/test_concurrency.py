import threading
from decimal import Decimal

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from coopay.core.exceptions import ConcurrencyConflict
from coopay.models import Base, Payment, PaymentTransaction
from coopay.services.payment import settle

from conftest import LedgerFactory


def test_concurrent_settlements_never_open_two_payments(tmp_path):
    engine = create_engine(
        f"sqlite:///{tmp_path / 'concurrency.db'}",
        connect_args={"check_same_thread": False, "timeout": 10},
    )
    Base.metadata.create_all(bind=engine)
    SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

    setup = SessionLocal()
    factory = LedgerFactory(setup)
    coop = factory.cooperative()
    member = factory.member(coop)
    factory.production(member, "50000")
    coop_id, member_id = coop.id, member.id
    setup.close()

    barrier = threading.Barrier(2)
    outcomes = []
    lock = threading.Lock()

    def attempt():
        db = SessionLocal()
        try:
            barrier.wait()
            settle(db, member_id, coop_id, Decimal("10000"))
            result = "ok"
        except ConcurrencyConflict:
            result = "conflict"
        finally:
            db.close()
        with lock:
            outcomes.append(result)

    threads = [threading.Thread(target=attempt) for _ in range(2)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    check = SessionLocal()
    try:
        successes = outcomes.count("ok")
        assert len(outcomes) == 2
        assert successes >= 1

        payments = check.query(Payment).all()
        assert len(payments) == 1
        open_payments = [p for p in payments if p.amount_remaining_to_pay > 0]
        assert len(open_payments) <= 1

        payment = payments[0]
        assert payment.amount_paid == Decimal("10000") * successes
        assert payment.amount_remaining_to_pay == Decimal("50000") - payment.amount_paid
        assert check.query(PaymentTransaction).count() == successes
    finally:
        check.close()
        Base.metadata.drop_all(bind=engine)
        engine.dispose()
