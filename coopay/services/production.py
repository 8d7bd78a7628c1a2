from decimal import Decimal
from uuid import UUID

from sqlalchemy.orm import Session

from coopay.core.exceptions import NotFoundError, ValidationError
from coopay.core.money import quantize
from coopay.models.production import Product, Production, ProductionPaymentStatus
from coopay.services.ledger import get_cooperative, get_member
from coopay.services.season import resolve_season_scope


def create_product(db: Session, cooperative_id: UUID, product_name: str, unit_price: Decimal = None) -> Product:
    get_cooperative(db, cooperative_id)
    product_name = (product_name or "").strip()
    if not product_name:
        raise ValidationError("Product name is required")
    product = Product(
        cooperative_id=cooperative_id,
        product_name=product_name,
        unit_price=quantize(unit_price) if unit_price is not None else None
    )
    db.add(product)
    db.commit()
    db.refresh(product)
    return product


def list_products(db: Session, cooperative_id: UUID):
    return db.query(Product).filter(Product.cooperative_id == cooperative_id).order_by(Product.product_name.asc()).all()


def list_productions(db: Session, cooperative_id: UUID, member_id: UUID = None, season_id: UUID = None):
    query = db.query(Production).filter(Production.cooperative_id == cooperative_id)
    if member_id is not None:
        query = query.filter(Production.member_id == member_id)
    if season_id is not None:
        query = query.filter(Production.season_id == season_id)
    return query.order_by(Production.created_at.desc()).all()


def record_production(
    db: Session,
    member_id: UUID,
    cooperative_id: UUID,
    product_id: UUID,
    quantity: int,
    unit_price: Decimal = None,
    season_id: UUID = None
) -> Production:
    """Record a member's delivery. ``total_price`` is quantity times unit price."""
    if quantity is None or int(quantity) != quantity or quantity < 1:
        raise ValidationError("Quantity must be a whole number of at least 1")

    get_member(db, member_id, cooperative_id)
    product = db.query(Product).filter(
        Product.id == product_id,
        Product.cooperative_id == cooperative_id
    ).first()
    if not product:
        raise NotFoundError("Product not found in this cooperative")

    if unit_price is None:
        unit_price = product.unit_price
    if unit_price is None:
        raise ValidationError("Unit price is required")
    unit_price = quantize(unit_price)
    if unit_price < 0:
        raise ValidationError("Unit price cannot be negative")

    season_id = resolve_season_scope(db, cooperative_id, season_id)
    if season_id is None:
        raise ValidationError("No active season; a season ID is required")

    production = Production(
        member_id=member_id,
        cooperative_id=cooperative_id,
        season_id=season_id,
        product_id=product.id,
        quantity=quantity,
        unit_price=unit_price,
        total_price=quantize(unit_price * quantity),
        payment_status=ProductionPaymentStatus.PENDING
    )
    db.add(production)
    db.commit()
    db.refresh(production)
    return production
