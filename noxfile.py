import nox

nox.options.sessions = [
    "format",
    "lint",
    "typecheck",
    "test",
]
# Create fresh isolated environments using uv backend
nox.options.reuse_existing_virtualenvs = False
nox.options.default_venv_backend = "uv"


@nox.session(python="3.12")
def fix(session: nox.Session) -> None:
    """Format and fix code issues."""
    session.install("black", "isort", "ruff")
    session.run("black", "calsync/")
    session.run("isort", "calsync/")
    session.run("ruff", "check", "--fix", "calsync/")


@nox.session(python="3.12")
def format(session: nox.Session) -> None:
    """Check code formatting."""
    session.install("black", "isort")
    session.run("black", "--check", "--diff", "calsync/")
    session.run("isort", "--check-only", "--diff", "calsync/")


@nox.session(python="3.12")
def lint(session: nox.Session) -> None:
    """Run linting."""
    session.install("ruff")
    session.run("ruff", "check", "calsync/")


@nox.session(python="3.12")
def typecheck(session: nox.Session) -> None:
    """Run type checking."""
    session.install("mypy", "types-python-dateutil")
    session.install("-e", ".")
    session.run("mypy", "calsync")


@nox.session(python="3.12")
def test(session: nox.Session) -> None:
    """Run tests for the sync engine."""
    session.install("-e", ".[test]")
    session.run("python", "-m", "pytest", "calsync/", "-v", "-r", "fE")


@nox.session(python="3.12")
def test_cov(session: nox.Session) -> None:
    """Run tests with coverage."""
    session.install("-e", ".[test]")
    session.install("pytest-cov")
    session.run(
        "python",
        "-m",
        "pytest",
        "calsync",
        "--cov=calsync",
        "--cov-report=xml:coverage.xml",
        "-v",
        "-r",
        "fE",
    )
