"""
Shopping carts.

A cart is a list of line dicts keyed by tenant and cart id, where the cart
id is ``user:<id>`` for signed-in shoppers and ``session:<token>`` for
guests. Carts live in process memory unless REDIS_URL is set, in which case
they are shared through Redis and expire after CART_TTL_SECONDS.
"""

import json
import secrets
from typing import Dict, List, Optional, Tuple
import redis
from fastapi import HTTPException, status
from sqlalchemy.orm import Session
from app.core.config import settings
from app.core.logging_config import logger
from app.crud.product import product as product_crud, product_variant as variant_crud
from app.models.product import ProductStatus
from app.models.user import User
from app.schemas.cart import Cart, CartItem

CART_COOKIE_NAME = "cart_session_id"
CART_COOKIE_MAX_AGE = 60 * 60 * 24 * 30


def new_session_id() -> str:
    return secrets.token_hex(32)


def cart_id_for(user: Optional[User], session_id: Optional[str]) -> Optional[str]:
    if user is not None:
        return f"user:{user.id}"
    if session_id:
        return f"session:{session_id}"
    return None


class MemoryCartStore:
    """Process-local store. Lost on restart and not shared between workers."""

    def __init__(self):
        self._carts: Dict[Tuple[int, str], List[dict]] = {}

    def load(self, tenant_id: int, cart_id: str) -> List[dict]:
        return [dict(line) for line in self._carts.get((tenant_id, cart_id), [])]

    def save(self, tenant_id: int, cart_id: str, lines: List[dict]) -> None:
        if lines:
            self._carts[(tenant_id, cart_id)] = [dict(line) for line in lines]
        else:
            self._carts.pop((tenant_id, cart_id), None)

    def clear_all(self) -> None:
        self._carts.clear()


class RedisCartStore:
    """Carts as JSON strings under ``cart:<tenant_id>:<cart_id>``."""

    def __init__(self, client: "redis.Redis", ttl: int):
        self.client = client
        self.ttl = ttl

    @staticmethod
    def _key(tenant_id: int, cart_id: str) -> str:
        return f"cart:{tenant_id}:{cart_id}"

    def load(self, tenant_id: int, cart_id: str) -> List[dict]:
        raw = self.client.get(self._key(tenant_id, cart_id))
        return json.loads(raw) if raw else []

    def save(self, tenant_id: int, cart_id: str, lines: List[dict]) -> None:
        key = self._key(tenant_id, cart_id)
        if lines:
            self.client.set(key, json.dumps(lines), ex=self.ttl)
        else:
            self.client.delete(key)


def build_cart_store():
    if settings.REDIS_URL:
        try:
            client = redis.from_url(settings.REDIS_URL)
            client.ping()
            logger.info("Cart store: redis")
            return RedisCartStore(client, settings.CART_TTL_SECONDS)
        except redis.RedisError as e:
            logger.error(f"Failed to connect to Redis, carts fall back to memory: {e}")
    return MemoryCartStore()


def summarize(lines: List[dict]) -> Cart:
    items = [CartItem(**line) for line in lines]
    total = round(sum(item.price * item.quantity for item in items), 2)
    return Cart(items=items, total=total, item_count=sum(item.quantity for item in items))


def _same_line(line: dict, product_id: int, variant_id: Optional[int]) -> bool:
    return line["product_id"] == product_id and line.get("variant_id") == variant_id


class CartService:
    """Cart operations. Prices and stock are checked against the catalogue on add."""

    def __init__(self, store=None):
        self.store = store or build_cart_store()

    def get_cart(self, tenant_id: int, cart_id: Optional[str]) -> Cart:
        if not cart_id:
            return Cart()
        return summarize(self.store.load(tenant_id, cart_id))

    def count(self, tenant_id: int, cart_id: Optional[str]) -> int:
        return self.get_cart(tenant_id, cart_id).item_count

    def add_item(
        self,
        db: Session,
        tenant_id: int,
        cart_id: str,
        product_id: int,
        variant_id: Optional[int],
        quantity: int
    ) -> Cart:
        """
        Add a product (or one of its variants) to the cart.

        Adding a line that is already there increases its quantity.

        Raises:
            HTTPException 404: Product or variant not found
            HTTPException 400: Product unavailable or not enough stock
        """
        product = product_crud.get(db, id=product_id, tenant_id=tenant_id)
        if not product:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Product not found"
            )
        if product.status != ProductStatus.active:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Product is not available"
            )

        variant = None
        if variant_id is not None:
            variant = variant_crud.get(db, id=variant_id, tenant_id=tenant_id)
            if not variant or variant.product_id != product.id:
                raise HTTPException(
                    status_code=status.HTTP_404_NOT_FOUND,
                    detail="Variant not found"
                )

        lines = self.store.load(tenant_id, cart_id)
        existing = next((line for line in lines if _same_line(line, product_id, variant_id)), None)
        wanted = quantity + (existing["quantity"] if existing else 0)

        available = variant.stock_quantity if variant else product.stock_quantity
        if available is not None and available < wanted:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Insufficient stock for {product.name}. Available: {available}"
            )

        if existing:
            existing["quantity"] = wanted
        else:
            price = variant.price if variant and variant.price is not None else product.effective_price
            name = f"{product.name} - {variant.name}" if variant and variant.name else product.name
            lines.append({
                "product_id": product.id,
                "variant_id": variant.id if variant else None,
                "quantity": quantity,
                "price": float(price),
                "name": name,
                "image": product.image_url,
                "sku": (variant.sku if variant else None) or product.sku,
                "slug": product.slug,
            })

        self.store.save(tenant_id, cart_id, lines)
        return summarize(lines)

    def update_item(self, tenant_id: int, cart_id: str, product_id: int, variant_id: Optional[int], quantity: int) -> Cart:
        """Set a line's quantity. Zero or less removes it."""
        lines = self.store.load(tenant_id, cart_id)
        line = next((line for line in lines if _same_line(line, product_id, variant_id)), None)
        if line is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Item not in cart"
            )
        if quantity <= 0:
            lines.remove(line)
        else:
            line["quantity"] = quantity
        self.store.save(tenant_id, cart_id, lines)
        return summarize(lines)

    def remove_item(self, tenant_id: int, cart_id: str, product_id: int, variant_id: Optional[int]) -> Cart:
        lines = [line for line in self.store.load(tenant_id, cart_id) if not _same_line(line, product_id, variant_id)]
        self.store.save(tenant_id, cart_id, lines)
        return summarize(lines)

    def clear(self, tenant_id: int, cart_id: Optional[str]) -> Cart:
        if cart_id:
            self.store.save(tenant_id, cart_id, [])
        return Cart()

    def merge(self, tenant_id: int, session_cart_id: str, user_cart_id: str) -> Dict[str, int]:
        """
        Fold a guest cart into the user's cart and empty the guest cart.

        Returns:
            Counts of lines added (merged) and lines whose quantity grew (updated)
        """
        guest_lines = self.store.load(tenant_id, session_cart_id)
        user_lines = self.store.load(tenant_id, user_cart_id)
        merged = updated = 0

        for guest_line in guest_lines:
            existing = next(
                (line for line in user_lines
                 if _same_line(line, guest_line["product_id"], guest_line.get("variant_id"))),
                None,
            )
            if existing:
                existing["quantity"] += guest_line["quantity"]
                updated += 1
            else:
                user_lines.append(guest_line)
                merged += 1

        self.store.save(tenant_id, user_cart_id, user_lines)
        self.store.save(tenant_id, session_cart_id, [])
        logger.info(f"Cart merged: tenant_id={tenant_id}, merged={merged}, updated={updated}")
        return {"merged": merged, "updated": updated}


# Create a singleton instance
cart_service = CartService()
