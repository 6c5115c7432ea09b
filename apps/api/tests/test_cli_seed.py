from __future__ import annotations

from collections.abc import Generator

import pytest
from click.testing import CliRunner
from sqlalchemy import create_engine, func, select
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from app import cli as cli_module
from app.core.passwords import verify_password
from app.crm.models import CRMAccount, CRMActivity, CRMContact, CRMDeal, CRMNote, CRMStage, CRMUser
from app.crm.seed import seed_demo_data


@pytest.fixture()
def memory_engine(monkeypatch: pytest.MonkeyPatch) -> Generator[Engine, None, None]:
    engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    monkeypatch.setattr(cli_module, "engine", engine)
    monkeypatch.setattr(cli_module, "SessionLocal", sessionmaker(bind=engine, autocommit=False, autoflush=False))
    yield engine
    engine.dispose()


def _count(session: Session, model: type) -> int:
    return session.scalar(select(func.count()).select_from(model)) or 0


def test_seed_command_inserts_demo_data(memory_engine: Engine) -> None:
    result = CliRunner().invoke(cli_module.cli, ["seed"])

    assert result.exit_code == 0, result.output
    assert "Seed data inserted (3 deals)" in result.output
    with Session(memory_engine) as session:
        assert _count(session, CRMUser) == 1
        assert _count(session, CRMStage) == 6
        assert _count(session, CRMAccount) == 3
        assert _count(session, CRMContact) == 4
        assert _count(session, CRMDeal) == 3
        assert _count(session, CRMActivity) == 2
        assert _count(session, CRMNote) == 2
        admin = session.scalar(select(CRMUser))
        assert admin.email == "admin@localcrm.test"
        assert verify_password("admin123", admin.password_hash)
        won = session.scalar(select(CRMStage).where(CRMStage.name == "Won"))
        assert (won.is_won, won.is_lost, won.order_index) == (1, 0, 5)


def test_seed_is_repeatable(memory_engine: Engine) -> None:
    runner = CliRunner()
    assert runner.invoke(cli_module.cli, ["seed"]).exit_code == 0
    assert runner.invoke(cli_module.cli, ["seed"]).exit_code == 0

    with Session(memory_engine) as session:
        assert _count(session, CRMDeal) == 3
        assert _count(session, CRMUser) == 1


def test_seed_links_deals_to_contacts_and_stages(memory_engine: Engine) -> None:
    cli_module.Base.metadata.create_all(bind=memory_engine)
    with Session(memory_engine) as session:
        summary = seed_demo_data(session, admin_email="owner@localcrm.test", admin_password="secret1")
        assert summary.deals == 3

        retrofit = session.scalar(select(CRMDeal).where(CRMDeal.title == "Atlas Automation Retrofit"))
        stage = session.get(CRMStage, retrofit.stage_id)
        contact = session.get(CRMContact, retrofit.primary_contact_id)
        assert stage.name == "Proposal"
        assert (contact.first_name, contact.last_name) == ("Carlos", "Diaz")
        assert retrofit.amount == 98000
        assert retrofit.close_date.isoformat() == "2024-11-20"


def test_init_db_and_create_user(memory_engine: Engine) -> None:
    runner = CliRunner()
    assert runner.invoke(cli_module.cli, ["init-db"]).exit_code == 0

    result = runner.invoke(
        cli_module.cli,
        ["create-user", "--email", "Sam@LocalCRM.test", "--name", "Sam Sales", "--password", "s3cret!"],
    )

    assert result.exit_code == 0, result.output
    assert "Created user: sam@localcrm.test" in result.output
    with Session(memory_engine) as session:
        user = session.scalar(select(CRMUser).where(CRMUser.email == "sam@localcrm.test"))
        assert user is not None
        assert verify_password("s3cret!", user.password_hash)


def test_create_user_rejects_short_password(memory_engine: Engine) -> None:
    result = CliRunner().invoke(
        cli_module.cli,
        ["create-user", "--email", "x@localcrm.test", "--name", "X", "--password", "123"],
    )

    assert result.exit_code != 0
    assert "at least 6 characters" in result.output
