"""CLI application entry point."""

from pathlib import Path

import click
from dotenv import load_dotenv

from ledgerly.core.config import get_settings
from ledgerly.core.logging import configure_logging, get_logger
from ledgerly.infrastructure.database.base import SessionLocal, init_db

# Load environment variables from .env file
dotenv_path = Path(__file__).parent.parent.parent / ".env"
load_dotenv(dotenv_path)

configure_logging()
logger = get_logger(__name__)


def _business_id_for(db, email: str) -> str:
    from ledgerly.domain.services.auth_service import AuthService

    user = AuthService(db).get_user_by_email(email)
    if not user:
        click.echo(f"❌ User not found: {email}", err=True)
        raise click.Abort()
    return user.business_id


@click.group()
@click.version_option(version="0.1.0")
def app() -> None:
    """Ledgerly - personal and small-business finance."""
    pass


@app.command("init-db")
def init_database() -> None:
    """Create database tables."""
    click.echo("🔧 Initializing database...")
    try:
        init_db()
        click.echo("✅ Database initialized")
    except Exception as e:
        click.echo(f"❌ Failed to initialize database: {e}", err=True)
        raise click.Abort()


@app.command()
def config() -> None:
    """Show the active configuration (secrets hidden)."""
    settings = get_settings()
    click.echo(f"Environment:    {settings.environment}")
    click.echo(f"Database:       {settings.database_url.split('@')[-1]}")
    click.echo(f"Currency:       {settings.default_currency}")
    click.echo(f"VAT rate:       {settings.default_vat_rate}")
    click.echo(f"Log level:      {settings.log_level}")


@app.command()
@click.option("--email", required=True, prompt=True, help="User email")
@click.option(
    "--password",
    required=True,
    prompt=True,
    hide_input=True,
    confirmation_prompt=True,
    help="User password",
)
@click.option("--full-name", required=True, prompt=True, help="Full name")
@click.option("--business-name", default=None, help="Business name (default: full name)")
def create_user(email: str, password: str, full_name: str, business_name: str) -> None:
    """Register a user together with their business."""
    from ledgerly.core.exceptions import ConflictError
    from ledgerly.domain.services.auth_service import AuthService

    click.echo(f"👤 Creating user: {email}")
    try:
        with SessionLocal() as db:
            user = AuthService(db).register(
                email=email,
                password=password,
                full_name=full_name,
                business_name=business_name,
            )
            click.echo(f"✅ User created. ID: {user.id}, business: {user.business_id}")
    except ConflictError as e:
        click.echo(f"❌ {e.message}", err=True)
        raise click.Abort()


@app.command()
@click.option("--email", required=True, help="Email of the business owner")
def detect_recurring(email: str) -> None:
    """Scan transactions for monthly recurring income and expenses."""
    from ledgerly.domain.services.recurring_service import RecurringService

    with SessionLocal() as db:
        business_id = _business_id_for(db, email)
        patterns = RecurringService(db).detect(business_id)
        if not patterns:
            click.echo("   No recurring patterns found")
            return
        for pattern in patterns:
            click.echo(
                f"   • {pattern.description} ({pattern.type}): "
                f"{pattern.amount} x{pattern.occurrences}, last {pattern.last_seen_date}"
            )
        click.echo(f"\nTotal: {len(patterns)} patterns")


@app.command()
@click.option("--email", required=True, help="Email of the business owner")
def refresh_prices(email: str) -> None:
    """Update current prices of every stock holding."""
    from ledgerly.domain.services.stock_service import StockService

    click.echo("📈 Refreshing stock prices...")
    with SessionLocal() as db:
        business_id = _business_id_for(db, email)
        result = StockService(db).refresh_all(business_id)
    click.echo(f"✅ Updated: {result['updated']}, failed: {result['failed']}")


@app.command()
@click.option("--base", default="ILS", help="Base currency")
def rates(base: str) -> None:
    """Print the latest exchange rates for a base currency."""
    from ledgerly.infrastructure.external_apis import ExchangeRateClient

    data = ExchangeRateClient().get_rates(base.upper())
    click.echo(f"💱 {data['base']} rates on {data['date']}:")
    for currency, rate in sorted(data["rates"].items()):
        click.echo(f"   {currency}: {rate}")


@app.command()
@click.option("--host", default="0.0.0.0", help="API host")
@click.option("--port", default=8000, help="API port")
@click.option("--reload", is_flag=True, help="Auto-reload (development)")
def serve(host: str, port: int, reload: bool) -> None:
    """Start the FastAPI server."""
    import uvicorn

    click.echo(f"🚀 Starting API at http://{host}:{port}")
    click.echo(f"📖 Docs at http://{host}:{port}/docs")
    uvicorn.run("ledgerly.api.main:app", host=host, port=port, reload=reload)
