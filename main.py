from fastapi import FastAPI, Depends, HTTPException, status
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.orm import Session
from sqlalchemy import text
from app.database import get_db
from app.core.config import settings
from app.routers import (
    auth,
    admin,
    cron,
    users,
    customers,
    products,
    inventory,
    cart,
    orders,
    store,
    support,
    landlord_support,
    notifications,
    subscription,
    domains,
    pricing,
)
from app.core.logging_config import logger

# Schema is managed by Alembic migrations

app = FastAPI(
    title="StoreFlow API",
    version="1.0.0",
    redirect_slashes=False  # Disable automatic redirects to prevent POST data loss
)

# Storefronts send the cart cookie, so credentials are allowed
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(auth.router, prefix="/api/auth", tags=["Authentication"])
app.include_router(admin.router, prefix="/api/admin", tags=["Admin"])
app.include_router(cron.router, prefix="/api/cron", tags=["Cron"])
app.include_router(users.router, prefix="/api/users", tags=["Users"])
app.include_router(customers.router, prefix="/api/customers", tags=["Customers"])
app.include_router(products.router, prefix="/api/products", tags=["Products"])
app.include_router(inventory.router, prefix="/api/inventory", tags=["Inventory"])
app.include_router(orders.router, prefix="/api/orders", tags=["Orders"])
app.include_router(support.router, prefix="/api/support", tags=["Support"])
app.include_router(landlord_support.router, prefix="/api/landlord-support", tags=["Landlord Support"])
app.include_router(notifications.router, prefix="/api/notifications", tags=["Notifications"])
app.include_router(subscription.router, prefix="/api/subscription", tags=["Subscription"])
app.include_router(domains.router, prefix="/api/domains", tags=["Domains"])
app.include_router(pricing.router, prefix="/api/pricing", tags=["Pricing"])
app.include_router(cart.router, prefix="/api/store/cart", tags=["Storefront"])
app.include_router(store.router, prefix="/api/store", tags=["Storefront"])


@app.get("/health")
async def health_check(db: Session = Depends(get_db)):
    try:
        db.execute(text("SELECT 1"))
        return {
            "status": "healthy",
            "database": "connected"
        }
    except Exception as e:
        logger.error(f"Health check failed: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Service unhealthy"
        )
