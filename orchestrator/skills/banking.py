"""Banking domain skills."""

from __future__ import annotations

from orchestrator.memory.models import FieldMap

BALANCES = {
    "Checking account": "$2,543.67",
    "Savings account": "$15,230.42",
    "Credit card": "$1,250.00 available credit",
    "All accounts": "Checking: $2,543.67 | Savings: $15,230.42 | Credit: $1,250.00 available",
}

RECENT_TRANSACTIONS = (
    ("01/15", "Direct Deposit", "+$3,200.00"),
    ("01/14", "Coffee Shop", "-$4.85"),
    ("01/13", "Gas Station", "-$52.40"),
    ("01/12", "Online Purchase", "-$29.99"),
    ("01/11", "ATM Withdrawal", "-$100.00"),
)


def format_currency(amount: float) -> str:
    if amount == int(amount):
        return f"${int(amount):,}"
    return f"${amount:,.2f}"


def greet(fields: FieldMap) -> str:
    return (
        "Welcome to SecureBank! I'm here to help you with your banking needs. "
        "I can assist with loan inquiries, balance checks, transaction history, and more. "
        "How can I help you today?"
    )


def loan_inquiry(fields: FieldMap) -> str:
    raw_amount = fields.get("amount")
    if not raw_amount:
        return "I'd be happy to help you with a loan! Could you please tell me how much you'd like to borrow?"

    try:
        amount = float(str(raw_amount).replace(",", "").replace("$", ""))
    except ValueError:
        amount = 0.0
    if amount <= 0:
        return "Please provide a valid loan amount. How much would you like to borrow?"

    purpose = str(fields.get("purpose") or "general purposes").lower()
    monthly = round(amount * 0.08 / 12)

    return "\n".join(
        [
            "Loan Application Details",
            "",
            f"Amount: {format_currency(amount)}",
            f"Purpose: {purpose}",
            "",
            "Next steps:",
            "- We'll review your application within 24-48 hours",
            "- Our team will contact you for income verification",
            "- Pre-approval typically takes 3-5 business days",
            "",
            f"Estimated monthly payment: {format_currency(monthly)}",
            "Questions? Call our loan specialists at 1-800-LOANS-NOW",
        ]
    )


def balance_check(fields: FieldMap) -> str:
    account_type = str(fields.get("account_type") or "All accounts")
    balance = BALANCES.get(account_type, BALANCES["All accounts"])
    return (
        f"Account Balance Information\n\n{account_type}: {balance}\n\n"
        "All balances are current as of today. "
        "Need anything else? I can help with loans, transactions, or other banking services."
    )


def transaction_history(fields: FieldMap) -> str:
    account_type = fields.get("account_type") or "All accounts"
    period = fields.get("time_period") or "Last 30 days"
    lines = [f"- {date} - {label} - {amount}" for date, label, amount in RECENT_TRANSACTIONS]
    return "\n".join(
        [
            "Transaction History",
            "",
            f"Account: {account_type}",
            f"Period: {period}",
            "",
            "Recent transactions:",
            *lines,
            "",
            f"Summary: {len(lines)} transactions totaling $3,012.76 net increase",
            "Need help with anything else?",
        ]
    )


def goodbye(fields: FieldMap) -> str:
    return "Thank you for banking with SecureBank! Have a wonderful day. Goodbye!"


def unknown(fields: FieldMap) -> str:
    return (
        "I'm sorry, I didn't understand that request. As your banking assistant, I can help you with:\n"
        "- Loan inquiries and applications\n"
        "- Account balance checks\n"
        "- Transaction history\n\n"
        "What would you like help with today?"
    )


SKILLS = {
    "banking.greet": greet,
    "banking.loan_inquiry": loan_inquiry,
    "banking.balance_check": balance_check,
    "banking.transaction_history": transaction_history,
    "banking.exit": goodbye,
    "banking.unknown": unknown,
}
