"""Main router for API v1.

This router combines all v1 endpoints under /api/v1 prefix.
"""

from fastapi import APIRouter

from ledgerly.api.v1.accounts.routes import router as accounts_router
from ledgerly.api.v1.alerts.routes import router as alerts_router
from ledgerly.api.v1.auth.routes import router as auth_router
from ledgerly.api.v1.budgets.routes import router as budgets_router
from ledgerly.api.v1.business.routes import router as business_router
from ledgerly.api.v1.categories.routes import router as categories_router
from ledgerly.api.v1.clients.routes import router as clients_router
from ledgerly.api.v1.dashboard.routes import router as dashboard_router
from ledgerly.api.v1.forex.routes import router as forex_router
from ledgerly.api.v1.goals.routes import router as goals_router
from ledgerly.api.v1.invoices.routes import router as invoices_router
from ledgerly.api.v1.loans.routes import router as loans_router
from ledgerly.api.v1.mortgages.routes import router as mortgages_router
from ledgerly.api.v1.projects.routes import router as projects_router
from ledgerly.api.v1.recurring.routes import router as recurring_router
from ledgerly.api.v1.reports.routes import router as reports_router
from ledgerly.api.v1.rules.routes import router as rules_router
from ledgerly.api.v1.savings.routes import router as savings_router
from ledgerly.api.v1.stocks.routes import router as stocks_router
from ledgerly.api.v1.tax.routes import router as tax_router
from ledgerly.api.v1.transactions.routes import router as transactions_router

# Create main v1 router
api_router = APIRouter()

api_router.include_router(
    auth_router,
    prefix="/auth",
    tags=["Authentication"],
)
api_router.include_router(business_router)

# Bookkeeping
api_router.include_router(accounts_router)
api_router.include_router(categories_router)
api_router.include_router(rules_router)
api_router.include_router(transactions_router)
api_router.include_router(recurring_router)

# Billing
api_router.include_router(clients_router)
api_router.include_router(projects_router)
api_router.include_router(invoices_router)

# Planning
api_router.include_router(budgets_router)
api_router.include_router(goals_router)
api_router.include_router(loans_router)
api_router.include_router(mortgages_router)
api_router.include_router(savings_router)

# Tax and reporting
api_router.include_router(tax_router)
api_router.include_router(reports_router)
api_router.include_router(dashboard_router)
api_router.include_router(alerts_router)

# Investments and currencies
api_router.include_router(stocks_router)
api_router.include_router(forex_router)
