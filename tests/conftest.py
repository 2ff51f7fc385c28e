"""Shared fixtures: text lines of synthetic Revolut statements."""

import pytest

DIVIDENDS_COLUMN_HEADER = (
    "Date Symbol Security name ISIN Country Gross Amount Withholding Tax Net Amount"
)


@pytest.fixture
def account_statement_lines() -> list[str]:
    """Account Statement for January 2022 with one holding and four transactions."""
    return [
        "Account Statement",
        "Generated on the 05 Feb 2022",
        "",
        "Account name John Smith",
        "Account number RVLT000123",
        "Period 01 Jan 2022 - 31 Jan 2022",
        "",
        "Account summary",
        "Starting Ending",
        "Stocks value $0 $1,705.00",
        "Cash value* $0 $293.88",
        "Total $0 $1,998.88",
        "",
        "Portfolio breakdown",
        "Symbol Company ISIN Quantity Price Value % of Portfolio",
        "AAPL Apple Inc US0378331005 10 $170.50 $1,705.00 85.30%",
        "Stocks value $1,705.00 85.30%",
        "Cash value $293.88 14.70%",
        "",
        "USD Transactions",
        "Date Symbol Type Quantity Price Side Value Fees Commission",
        "03 Jan 2022 10:15:30 GMT Cash top-up $2,000.00 $0 $0",
        "04 Jan 2022 14:30:00 GMT AAPL Trade - Market 10 $170.50 Buy $1,706.00 $0 $1.00",
        "Transfer from Revolut Trading Ltd to Revolut Securities Europe UAB",
        "20 Jan 2022 09:00:00 GMT AAPL Dividend $1.88 $0 $0",
        "Date Symbol Type Quantity Price Side Value Fees Commission",
        "31 Jan 2022 23:59:59 GMT Custody fee -$2.00 $0 $0",
        "",
        "Report lost or stolen card",
        "Get help directly In app",
    ]


@pytest.fixture
def profit_and_loss_lines() -> list[str]:
    """Profit and Loss Statement for 2024 with one dividend of each layout."""
    return [
        "Profit and Loss Statement",
        "Generated on the 10 Jan 2025",
        "Account name John Smith",
        "Account number RVLT000123",
        "Period 01 Jan 2024 - 31 Dec 2024",
        "",
        "USD Profit and Loss Statement",
        "Sells",
        "Other income & fees",
        "Dividends",
        DIVIDENDS_COLUMN_HEADER,
        # tax inline
        "2024-03-05 COP ConocoPhillips US20825C1045 US US$16.38 US$2.46 US$13.92",
        "Qty: 21",
        DIVIDENDS_COLUMN_HEADER,
        "Rate: 0.78",
        "Ex-date 2024-02-15",
        # tax shown as "-"
        "2024-06-13 MSFT Microsoft Corp US5949181045 US US$7.50 - US$7.50",
        "Qty: 10",
        "Rate: 0.75",
        "Ex-date 2024-05-15",
        # tax on a following line
        "2024-09-10 KO Coca-Cola Co US1912161007 US US$4.60",
        "Qty: 10",
        "US$0.69",
        "15%",
        "US$3.91",
        "Ex-date 2024-08-15",
        "Record date 2024-08-16",
        "Total US$28.48 US$3.15 US$25.33",
        "Sells summary",
    ]
