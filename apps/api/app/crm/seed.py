from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date

from sqlalchemy import delete, func, select
from sqlalchemy.orm import Session

from app.core.passwords import hash_password
from app.crm.models import CRMAccount, CRMActivity, CRMContact, CRMDeal, CRMNote, CRMStage, CRMUser


logger = logging.getLogger("app.crm.seed")

DEMO_STAGES = [
    {"name": "Lead", "order_index": 1},
    {"name": "Qualified", "order_index": 2},
    {"name": "Proposal", "order_index": 3},
    {"name": "Negotiation", "order_index": 4},
    {"name": "Won", "order_index": 5, "is_won": 1},
    {"name": "Lost", "order_index": 6, "is_lost": 1},
]

DEMO_ACCOUNTS = [
    {
        "name": "Summit Labs",
        "industry": "Healthcare",
        "website": "https://summit.example",
        "phone": "555-0101",
        "address": "123 Pine St",
    },
    {
        "name": "Atlas Manufacturing",
        "industry": "Manufacturing",
        "website": "https://atlas.example",
        "phone": "555-0110",
        "address": "98 Forge Rd",
    },
    {
        "name": "Brightline Marketing",
        "industry": "Marketing",
        "website": "https://brightline.example",
        "phone": "555-0199",
        "address": "76 Sunset Blvd",
    },
]

# (account index, first, last, email, phone, title)
DEMO_CONTACTS = [
    (0, "Jamie", "Ng", "jamie@summit.example", "555-2211", "Operations"),
    (0, "Priya", "Sato", "priya@summit.example", "555-2212", "IT Director"),
    (1, "Carlos", "Diaz", "carlos@atlas.example", "555-3301", "Plant Manager"),
    (2, "Mia", "Chen", "mia@brightline.example", "555-7701", "CMO"),
]

# (account index, contact index, title, amount, stage index, close date)
DEMO_DEALS = [
    (0, 0, "Summit Labs Expansion", 42000, 1, date(2024, 12, 15)),
    (1, 2, "Atlas Automation Retrofit", 98000, 2, date(2024, 11, 20)),
    (2, 3, "Brightline Campaign Rollout", 55000, 0, date(2024, 10, 5)),
]


@dataclass
class SeedSummary:
    admin_email: str
    users: int
    stages: int
    accounts: int
    contacts: int
    deals: int
    activities: int
    notes: int


def create_user(session: Session, *, email: str, password: str, name: str) -> CRMUser:
    user = CRMUser(email=email, password_hash=hash_password(password), name=name)
    session.add(user)
    session.commit()
    session.refresh(user)
    logger.info("crm.user_created", extra={"user_id": user.id})
    return user


def clear_demo_data(session: Session) -> None:
    # Children first so the wipe never depends on cascade settings.
    for model in (CRMNote, CRMActivity, CRMDeal, CRMContact, CRMAccount, CRMStage, CRMUser):
        session.execute(delete(model))
    session.flush()


def seed_demo_data(session: Session, *, admin_email: str, admin_password: str) -> SeedSummary:
    """Replace every CRM table's contents with the demo data set.

    Runs in one transaction: either the full data set is present afterwards or
    the database is left as it was.
    """
    try:
        clear_demo_data(session)

        admin = CRMUser(email=admin_email, password_hash=hash_password(admin_password), name="Alex Admin")
        session.add(admin)

        stages = [CRMStage(**{"is_won": 0, "is_lost": 0, **values}) for values in DEMO_STAGES]
        accounts = [CRMAccount(**values) for values in DEMO_ACCOUNTS]
        session.add_all([*stages, *accounts])
        session.flush()

        contacts = [
            CRMContact(
                account_id=accounts[account_index].id,
                first_name=first_name,
                last_name=last_name,
                email=email,
                phone=phone,
                title=title,
            )
            for account_index, first_name, last_name, email, phone, title in DEMO_CONTACTS
        ]
        session.add_all(contacts)
        session.flush()

        deals = [
            CRMDeal(
                account_id=accounts[account_index].id,
                primary_contact_id=contacts[contact_index].id,
                title=title,
                amount=amount,
                currency="USD",
                stage_id=stages[stage_index].id,
                owner_user_id=admin.id,
                close_date=close_date,
            )
            for account_index, contact_index, title, amount, stage_index, close_date in DEMO_DEALS
        ]
        session.add_all(deals)
        session.flush()

        activities = [
            CRMActivity(
                deal_id=deals[0].id,
                type="call",
                subject="Discovery call",
                due_date=date(2024, 9, 10),
                status="open",
                assigned_user_id=admin.id,
            ),
            CRMActivity(
                deal_id=deals[1].id,
                type="meeting",
                subject="On-site walkthrough",
                due_date=date(2024, 9, 14),
                status="done",
                assigned_user_id=admin.id,
            ),
        ]
        notes = [
            CRMNote(deal_id=deals[0].id, author_user_id=admin.id, body="Client wants phased rollout with training."),
            CRMNote(deal_id=deals[1].id, author_user_id=admin.id, body="Budget confirmed; waiting on final approval."),
        ]
        session.add_all([*activities, *notes])
        session.commit()
    except Exception:
        session.rollback()
        raise

    summary = SeedSummary(
        admin_email=admin_email,
        users=1,
        stages=len(stages),
        accounts=len(accounts),
        contacts=len(contacts),
        deals=session.scalar(select(func.count()).select_from(CRMDeal)) or 0,
        activities=len(activities),
        notes=len(notes),
    )
    logger.info("crm.seeded", extra={"result_count": summary.deals})
    return summary
