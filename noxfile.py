import os

import nox

PYTHON_VERSIONS = ["3.11", "3.12", "3.13", "3.14"]

nox.options.sessions = ["tests"]


def _install(session: nox.Session, *extras: str) -> None:
    """Install the project into the nox virtualenv via Poetry."""
    args = ["poetry", "install"]
    args += [f"--extras={extra}" for extra in extras] if extras else ["--all-extras"]
    session.run(*args, external=True)


@nox.session(python=PYTHON_VERSIONS)
def tests(session: nox.Session) -> None:
    """Run the full suite across Python versions."""
    _install(session)
    session.run("pytest", *session.posargs)


@nox.session(python=PYTHON_VERSIONS[-1])
def tests_domain(session: nox.Session) -> None:
    """Aggregates, the variant generator and the cart guard. No database needed."""
    _install(session, "test")
    session.run("pytest", "-m", "domain", *session.posargs)


@nox.session(python=PYTHON_VERSIONS[-1])
def tests_ledger(session: nox.Session) -> None:
    """Stock ledger, reservation engine and concurrent reservation tests."""
    _install(session, "test")
    session.run(
        "pytest",
        "tests/inventory/integration/test_stock_ledger.py",
        "tests/inventory/integration/test_reservation_engine.py",
        "tests/inventory/integration/test_concurrent_reservations.py",
        "tests/inventory/bdd/",
        *session.posargs,
    )


@nox.session(python=PYTHON_VERSIONS[-1])
def loadtest(session: nox.Session) -> None:
    """Headless contention run against a server at LOCUST_HOST (default localhost:8000).

    The run fails when the hot item ends oversold.
    """
    _install(session, "loadtest")
    session.run(
        "locust",
        "-f",
        "loadtests/locustfile.py",
        "InventoryContentionUser",
        "--headless",
        "-u",
        "50",
        "-r",
        "10",
        "-t",
        "60s",
        "--host",
        os.environ.get("LOCUST_HOST", "http://localhost:8000"),
    )
