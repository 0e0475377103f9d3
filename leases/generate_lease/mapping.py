from decimal import ROUND_HALF_UP, Decimal

BLANK_NAME = "_________________"


class LeaseMapping:
    """Textes des articles du contrat, dans l'ordre du document."""

    @staticmethod
    def format_amount(amount) -> str:
        value = Decimal(str(amount)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
        return f"{value:,.2f}"

    @staticmethod
    def format_date(value) -> str:
        return value.strftime("%B %d, %Y") if hasattr(value, "strftime") else str(value)

    @staticmethod
    def party_name(name) -> str:
        return name or BLANK_NAME

    @staticmethod
    def sections(terms) -> list[tuple[str, str]]:
        start = LeaseMapping.format_date(terms.start_date)
        end = LeaseMapping.format_date(terms.end_date)
        rent = LeaseMapping.format_amount(terms.rent)
        deposit = LeaseMapping.format_amount(terms.security_deposit)

        return [
            (
                "Premises",
                "The Landlord leases to the Tenant the property located at "
                f"{terms.property_address}.",
            ),
            ("Term", f"This lease begins on {start} and ends on {end}."),
            (
                "Rent",
                f"Tenant shall pay {rent} per month, due on the first day of each "
                "month. Rent received after the fifth day of the month will incur "
                "a late fee.",
            ),
            (
                "Security Deposit",
                f"Tenant shall pay a security deposit of {deposit} to be held by "
                "Landlord.",
            ),
            (
                "Utilities",
                "Tenant is responsible for all utilities unless otherwise agreed "
                "in writing.",
            ),
            (
                "Maintenance",
                "Tenant shall maintain the premises and promptly notify Landlord "
                "of any issues.",
            ),
            (
                "Termination",
                "Either party must provide 30 days written notice to terminate "
                "this lease.",
            ),
            (
                "Governing Law",
                "This lease is governed by the laws of the jurisdiction where the "
                "property is located.",
            ),
        ]
