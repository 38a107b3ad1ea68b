# MedVoice - Multi-Tenant Healthcare Voice AI Backend
# Copyright (c) 2026 George Scott Foley
# ORCID: 0009-0006-4957-0540
# Email: Georgescottfoley@proton.me
# Licensed under the MIT License - see LICENSE file for details

"""
Command Line Interface

Usage:
    medvoice serve              # Start API server
    medvoice init-db            # Create database tables
    medvoice ai-status          # Show LLM provider configuration
    medvoice ai-test            # One-shot completion against a provider
    medvoice issue-token        # Development access token for a user
"""

import asyncio

import typer
from rich.console import Console
from rich.table import Table

app = typer.Typer(name="medvoice", help="MedVoice - Multi-Tenant Healthcare Voice AI Backend")
console = Console()


# ============================================================
# SERVER COMMANDS
# ============================================================


@app.command()
def serve(
    host: str = typer.Option(None, help="Host to bind to (default: settings.host)"),
    port: int = typer.Option(None, help="Port to bind to (default: settings.port)"),
    workers: int = typer.Option(None, help="Number of worker processes"),
    reload: bool = typer.Option(False, help="Enable auto-reload (development)"),
):
    """Start the API server."""
    import uvicorn

    from .core.settings import get_settings

    settings = get_settings()
    host = host or settings.host
    port = port or settings.port
    workers = workers or settings.workers

    console.print(f"[bold green]Starting {settings.app_name} on {host}:{port}[/]")

    uvicorn.run(
        "medvoice.gateway.app:app",
        host=host,
        port=port,
        workers=workers if not reload else 1,
        reload=reload,
    )


# ============================================================
# DATABASE COMMANDS
# ============================================================


@app.command("init-db")
def init_db():
    """Create all tables from the ORM models."""

    async def _init():
        from .data.postgres import close_database, create_tables, init_database

        engine = await init_database()
        try:
            await create_tables(engine)
        finally:
            await close_database()

    asyncio.run(_init())
    console.print("[green]Database tables created.[/]")


# ============================================================
# AI COMMANDS
# ============================================================


@app.command("ai-status")
def ai_status():
    """Show which LLM providers are configured."""
    from .services.ai_service import AIService

    status = AIService().status()

    table = Table(title="AI Providers")
    table.add_column("Provider", style="cyan")
    table.add_column("Configured")
    table.add_column("Details", style="dim")

    def _mark(ok: bool) -> str:
        return "[green]✓[/]" if ok else "[red]✗[/]"

    openai_status = status["openai"]
    table.add_row(
        "openai",
        _mark(openai_status["configured"]),
        f"key={'yes' if openai_status['hasKey'] else 'no'}, "
        f"org={'yes' if openai_status['hasOrgId'] else 'no'}",
    )
    anthropic_status = status["anthropic"]
    table.add_row(
        "anthropic",
        _mark(anthropic_status["configured"]),
        f"key={'yes' if anthropic_status['hasKey'] else 'no'}",
    )
    console.print(table)

    if status["mockMode"]:
        console.print("[yellow]Mock mode is on: replies are canned.[/]")
    if not status["configured"]:
        console.print("[red]No AI provider is configured.[/]")
        raise typer.Exit(code=1)


@app.command("ai-test")
def ai_test(
    provider: str = typer.Option("openai", help="Provider: openai, anthropic"),
    message: str = typer.Option("Hello, how are you?", help="Message to send"),
    max_tokens: int = typer.Option(100, help="Token limit for the reply"),
):
    """Send one message to a provider and print the reply."""
    from .core.exceptions import MedVoiceError
    from .core.prompts import DEFAULT_SYSTEM_PROMPT
    from .services.ai_service import AIService

    async def _run():
        service = AIService()
        try:
            return await service.generate_response(
                [{"role": "user", "content": message}],
                provider=provider,
                system_prompt=DEFAULT_SYSTEM_PROMPT,
                temperature=0.7,
                max_tokens=max_tokens,
            )
        finally:
            await service.close()

    try:
        response = asyncio.run(_run())
    except MedVoiceError as e:
        console.print(f"[red]{e.message}[/]")
        raise typer.Exit(code=1) from e

    console.print(f"[bold]{response.model}[/]: {response.content}")
    usage = response.usage
    console.print(
        f"[dim]tokens: {usage.input_tokens} in / {usage.output_tokens} out[/]"
    )


# ============================================================
# AUTH COMMANDS
# ============================================================


@app.command("issue-token")
def issue_token(
    email: str = typer.Option(..., prompt=True, help="Email of an existing user"),
    minutes: int = typer.Option(None, help="Lifetime in minutes (default: settings)"),
):
    """Issue an access token for an existing user (development use)."""
    from datetime import timedelta

    from .gateway.auth import JWTService

    async def _lookup():
        from .data.postgres import close_database, get_session_factory, init_database
        from .data.repositories import UserRepository

        await init_database()
        try:
            async with get_session_factory()() as session:
                return await UserRepository(session).get_by_email(email)
        finally:
            await close_database()

    user = asyncio.run(_lookup())
    if user is None:
        console.print(f"[red]No user with email {email}.[/]")
        raise typer.Exit(code=1)

    token = JWTService().create_access_token(
        user.id,
        email=user.email,
        role=user.role,
        expires_delta=timedelta(minutes=minutes) if minutes else None,
    )
    console.print(f"\n[bold green]Access token for {user.email}:[/]\n")
    console.print(token)


@app.command()
def version():
    """Show version information."""
    from . import __version__

    console.print(f"MedVoice v{__version__}")


# ============================================================
# MAIN
# ============================================================


def main():
    """Main entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
