import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from ledger.api.v1 import index
from ledger.api.v1 import auth
from ledger.api.v1 import user
from ledger.api.v1 import role
from ledger.api.v1 import supplier
from ledger.api.v1 import product
from ledger.api.v1 import rate
from ledger.api.v1 import collection
from ledger.api.v1 import payment
from ledger.api.v1 import report
from ledger.api.v1 import audit

from ledger.core.config import settings
from ledger.core.errors import register_exception_handlers
from ledger.core.logging import setup_logging

setup_logging()

app = FastAPI(title=settings.app_name, debug=settings.debug)

# Middlewares
origins = []

if settings.allowed_hosts:
    origins = settings.allowed_hosts.split(",")

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

# Register routes
app.include_router(index.router, prefix="/api/v1", tags=["Health"])
app.include_router(auth.router, prefix="/api/v1/auth", tags=["Auth"])
app.include_router(user.router, prefix="/api/v1/users", tags=["Users"])
app.include_router(role.router, prefix="/api/v1/roles", tags=["Roles"])
app.include_router(supplier.router, prefix="/api/v1/suppliers", tags=["Suppliers"])
app.include_router(product.router, prefix="/api/v1/products", tags=["Products"])
app.include_router(rate.router, prefix="/api/v1/rates", tags=["Rates"])
app.include_router(
    collection.router, prefix="/api/v1/collections", tags=["Collections"])
app.include_router(payment.router, prefix="/api/v1/payments", tags=["Payments"])
app.include_router(report.router, prefix="/api/v1/reports", tags=["Reports"])
app.include_router(audit.router, prefix="/api/v1/audit-logs", tags=["Audit"])

if __name__ == "__main__":
    uvicorn.run(
        app,
        host=settings.host,
        port=settings.port,
        log_config=None,
        log_level=None,
    )
