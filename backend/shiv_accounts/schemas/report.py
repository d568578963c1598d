"""Report payloads"""

from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel


class AccountBalanceItem(BaseModel):
    id: Optional[int] = None
    code: Optional[str] = None
    name: str
    type: str
    balance: float


class ReportSection(BaseModel):
    items: List[AccountBalanceItem] = []
    total: float = 0


class BalanceSheetResponse(BaseModel):
    as_of_date: datetime
    assets: ReportSection
    liabilities: ReportSection
    equity: ReportSection
    current_earnings: float
    total_liabilities_and_equity: float
    is_balanced: bool


class ReportPeriod(BaseModel):
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None


class ProfitLossResponse(BaseModel):
    period: ReportPeriod
    income: ReportSection
    expenses: ReportSection
    net_profit: float
    is_profit: bool


class StockMovementLine(BaseModel):
    id: int
    movement_type: str
    quantity: float
    movement_date: datetime
    reference_type: Optional[str] = None
    reference_id: Optional[int] = None
    description: Optional[str] = None


class StockStatementItem(BaseModel):
    product_id: int
    product_name: str
    purchase_price: float
    purchases: float = 0
    sales: float = 0
    adjustments: float = 0
    closing_stock: float = 0
    stock_value: float = 0
    movements: List[StockMovementLine] = []


class StockSummary(BaseModel):
    total_products: int
    total_quantity: float
    total_stock_value: float


class StockStatementResponse(BaseModel):
    as_of_date: datetime
    items: List[StockStatementItem]
    summary: StockSummary


class PartnerInfo(BaseModel):
    id: int
    name: str
    type: str
    email: Optional[str] = None
    mobile: Optional[str] = None


class PartnerTransaction(BaseModel):
    id: int
    date: datetime
    account_code: str
    account_name: str
    description: Optional[str] = None
    reference_type: Optional[str] = None
    reference_id: Optional[int] = None
    debit: float
    credit: float
    balance: float


class PartnerSummary(BaseModel):
    total_debit: float
    total_credit: float
    final_balance: float
    is_debit: bool


class PartnerLedgerResponse(BaseModel):
    contact: PartnerInfo
    period: ReportPeriod
    transactions: List[PartnerTransaction]
    summary: PartnerSummary


class AmountCount(BaseModel):
    amount: float = 0
    count: int = 0


class PeriodFigures(BaseModel):
    monthly: AmountCount
    yearly: AmountCount
    total: AmountCount


class DashboardResponse(BaseModel):
    sales: PeriodFigures
    purchases: PeriodFigures
    receipts: PeriodFigures
    payments: PeriodFigures
    pending_receivables: float
    pending_payables: float
    overdue_invoices: int
    overdue_bills: int
    contact_count: int
    product_count: int
    profit_monthly: float
    profit_yearly: float
    profit_total: float
