# tools_builtin.py
# - leaf tool bodies: echo / hashing / letter count / mortgage / population
# - every function takes the validated argument bundle and returns a ToolResult

import hashlib
import math
from datetime import datetime, timezone
from typing import Any, Dict

from toolbox.adapter_countries_rest import CountriesAPIError, CountriesClient, CountryNotFound
from toolbox.results import ToolResult

MORTGAGE_FORMULA = "M = P * [r(1 + r)^n] / [(1 + r)^n - 1]"
COUNTRIES_SOURCE = "REST Countries API"


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _usd(amount: float) -> str:
    return f"${amount:,.2f}"


def tool_echo(p: Dict[str, Any]) -> ToolResult:
    return ToolResult.ok(f"Tool echo: {p['message']}")


def _digest(algorithm: str, text: str) -> ToolResult:
    value = hashlib.new(algorithm, text.encode("utf-8")).hexdigest()
    return ToolResult.ok(
        f'{algorithm.upper()} hash of "{text}": {value}',
        hash=value,
        input=text,
        algorithm=algorithm,
    )


def tool_sha1(p: Dict[str, Any]) -> ToolResult:
    return _digest("sha1", p["input"])


def tool_sha256(p: Dict[str, Any]) -> ToolResult:
    return _digest("sha256", p["input"])


def _one_char(mapped: str, original: str) -> str:
    # case mapping can expand a character ("\u0130".lower(), "\u00df".upper()); keep positions aligned
    return mapped if len(mapped) == 1 else original


def count_letter(text: str, letter: str) -> Dict[str, Any]:
    """Case-insensitive occurrences of ``letter`` in ``text``.

    The visualization lowercases the text and uppercases every match, so
    ``("Hello World", "l")`` gives ``"heLLo worLd"``.
    """
    needle = letter.lower()
    positions = [i for i, ch in enumerate(text) if ch.lower() == needle]
    hits = set(positions)
    visual = "".join(_one_char(ch.upper() if i in hits else ch.lower(), ch) for i, ch in enumerate(text))
    return {"count": len(positions), "positions": positions, "visualization": visual}


def tool_count_character(p: Dict[str, Any]) -> ToolResult:
    text, letter = p["text"], p["letter"]
    res = count_letter(text, letter)
    where = ", ".join(str(i) for i in res["positions"]) or "none"
    summary = (
        f"The letter '{letter}' appears {res['count']} time(s) in \"{text}\" (case-insensitive).\n"
        f"Positions (0-indexed): {where}\n"
        f"Visualization: {res['visualization']}"
    )
    return ToolResult.ok(summary, text=text, letter=letter, **res)


def mortgage_payment(loan_amount: float, annual_rate: float, years: int) -> Dict[str, Any]:
    monthly_rate = (annual_rate / 100) / 12
    n = years * 12
    if monthly_rate == 0:
        monthly = loan_amount / n
    else:
        growth = (1 + monthly_rate) ** n
        monthly = loan_amount * monthly_rate * growth / (growth - 1)
    total = monthly * n
    return {
        "loanAmount": loan_amount,
        "annualInterestRate": annual_rate,
        "loanTermYears": years,
        "monthlyPayment": round(monthly, 2),
        "totalAmountPaid": round(total, 2),
        "totalInterest": round(total - loan_amount, 2),
        "monthlyInterestRate": round(monthly_rate, 4),
        "numberOfPayments": n,
    }


def tool_mortgage(p: Dict[str, Any]) -> ToolResult:
    calc = mortgage_payment(p["loanAmount"], p["annualInterestRate"], p["loanTermYears"])
    if not all(math.isfinite(calc[k]) for k in ("monthlyPayment", "totalAmountPaid", "totalInterest")):
        return ToolResult.fail(
            "Mortgage payment could not be calculated: the inputs overflow floating point range.",
            error="Result out of range",
        )
    summary = (
        "Mortgage Payment Calculation:\n\n"
        f"Loan Amount: {_usd(calc['loanAmount'])}\n"
        f"Annual Interest Rate: {calc['annualInterestRate']}%\n"
        f"Loan Term: {calc['loanTermYears']} years\n\n"
        f"Monthly Payment: {_usd(calc['monthlyPayment'])}\n"
        f"Total Amount Paid: {_usd(calc['totalAmountPaid'])}\n"
        f"Total Interest Paid: {_usd(calc['totalInterest'])}\n\n"
        "This calculation uses the standard mortgage payment formula and assumes "
        "a fixed interest rate throughout the loan term."
    )
    return ToolResult.ok(summary, calculation=calc, formula=MORTGAGE_FORMULA, timestamp=_now())


def make_population_tool(client: CountriesClient):
    def tool_population(p: Dict[str, Any]) -> ToolResult:
        country = p["country"]
        try:
            record = client.lookup(country)
        except CountryNotFound:
            return ToolResult.fail(
                f'Country "{country}" not found. Please check the spelling or try alternative names '
                "(e.g., 'USA' instead of 'United States', 'UK' instead of 'United Kingdom').",
                error="Country not found",
            )
        except CountriesAPIError as e:
            return ToolResult.fail(
                f'Error fetching population data for "{country}": {e.message}. '
                "Please try again or verify the country name.",
                error=e.message,
                status=e.status,
            )
        if not record:
            return ToolResult.fail(
                f'No data found for country "{country}". Please verify the country name and try again.',
                error="No data found",
            )

        names = record.get("name") or {}
        official = names.get("official") or names.get("common") or country
        common = names.get("common") or official
        capitals = record.get("capital") or []
        capital = capitals[0] if capitals else "N/A"
        region = record.get("region") or "N/A"
        subregion = record.get("subregion") or "N/A"
        population = record.get("population")
        shown = f"{population:,}" if isinstance(population, int) else "unknown"

        summary = (
            f"Population data for {common}:\n\n"
            f"Population: {shown}\n"
            f"Official name: {official}\n"
            f"Capital: {capital}\n"
            f"Region: {region}\n"
            f"Subregion: {subregion}\n\n"
            f"Data source: {COUNTRIES_SOURCE}\n"
            "Note: Population figures are estimates and may not reflect the most recent census data."
        )
        return ToolResult.ok(
            summary,
            country={
                "name": {"common": common, "official": official},
                "population": population,
                "capital": capital,
                "region": region,
                "subregion": subregion,
            },
            data_source=COUNTRIES_SOURCE,
            timestamp=_now(),
        )
    return tool_population
