"""
SQLAlchemy ORM models package.

All models are imported here so that:
  1. Base.metadata knows every table before create_all runs
  2. Other modules can import from bulkreach.models directly
"""

from bulkreach.models.user import User  # noqa: F401
from bulkreach.models.ledger_account import LedgerAccount, AccountRole, AccountStatus  # noqa: F401
from bulkreach.models.campaign import Campaign, CampaignStatus, MediaType, MobileNumberEntryType  # noqa: F401
from bulkreach.models.journal_entry import JournalEntry, EntryType, EntryStatus  # noqa: F401
