"""
Ledger entries - one side of a double entry posting

A posted document produces several rows sharing (reference_type, reference_id)
whose debits equal their credits.
"""

from datetime import datetime
from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, DECIMAL
from sqlalchemy.orm import relationship

from shiv_accounts.db.base import Base


class LedgerEntry(Base):
    __tablename__ = "ledger_entries"

    id = Column(Integer, primary_key=True, index=True)
    account_id = Column(Integer, ForeignKey("chart_of_accounts.id"), nullable=False, index=True)
    # Set on receivable/payable lines so the partner ledger can find them
    contact_id = Column(Integer, ForeignKey("contacts.id"), nullable=True, index=True)
    # DEBIT / CREDIT
    entry_type = Column(String(10), nullable=False, comment="Debit or credit")
    amount = Column(DECIMAL(12, 2), nullable=False, comment="Amount")
    description = Column(Text, comment="Narration")
    reference_type = Column(String(30), index=True, comment="Source document type")
    reference_id = Column(Integer, index=True, comment="Source document id")
    transaction_date = Column(DateTime, nullable=False, default=datetime.utcnow, index=True, comment="Transaction date")
    created_at = Column(DateTime, default=datetime.utcnow)

    account = relationship("ChartOfAccount")
    contact = relationship("Contact")

    def __repr__(self):
        return f"<LedgerEntry {self.entry_type} {self.amount} account={self.account_id}>"
