# tools.py
# - tool declarations: name, description, ArgumentSchema, handler
# - build_registry(): one-time startup construction, returns a frozen registry

from typing import Optional

from toolbox.adapter_countries_rest import CountriesClient
from toolbox.registry import ToolDescriptor, ToolRegistry
from toolbox.tools_builtin import (
    MORTGAGE_FORMULA,
    make_population_tool,
    tool_count_character,
    tool_echo,
    tool_mortgage,
    tool_sha1,
    tool_sha256,
)
from toolbox.validation import ArgumentSchema, FieldSpec

ECHO_SCHEMA = ArgumentSchema.of(
    message=FieldSpec("string", description="The message to echo"),
)

HASH_SCHEMA = ArgumentSchema.of(
    input=FieldSpec(
        "string",
        description="The input string to hash. Example: 'hello world'",
    ),
)

COUNT_SCHEMA = ArgumentSchema.of(
    text=FieldSpec("string", description="The text to search in"),
    letter=FieldSpec("string", exact_length=1, description="The single character to count (case-insensitive)"),
)

MORTGAGE_SCHEMA = ArgumentSchema.of(
    loanAmount=FieldSpec(
        "number",
        positive=True,
        description="The loan amount in dollars. Example: 300000 for a $300,000 loan",
    ),
    annualInterestRate=FieldSpec(
        "number",
        minimum=0,
        description="The annual interest rate as a percentage. Example: 6.5 for 6.5%, or 0 for 0% interest",
    ),
    loanTermYears=FieldSpec(
        "integer",
        positive=True,
        description="The loan term in years. Example: 30 for a 30-year mortgage",
    ),
)

POPULATION_SCHEMA = ArgumentSchema.of(
    country=FieldSpec(
        "string",
        min_length=1,
        description=(
            "The name of the country to get population data for. Can be full name (e.g., 'United States'), "
            "common name (e.g., 'USA'), or ISO code (e.g., 'US')."
        ),
    ),
)


def build_registry(countries: Optional[CountriesClient] = None) -> ToolRegistry:
    registry = ToolRegistry()
    registry.register(ToolDescriptor("echo", "Echo a message", ECHO_SCHEMA, tool_echo))
    registry.register(ToolDescriptor(
        "calculate_sha1",
        "Calculate the SHA1 hash of a given string input. Returns the lowercase hexadecimal digest of its UTF-8 bytes.",
        HASH_SCHEMA,
        tool_sha1,
    ))
    registry.register(ToolDescriptor(
        "calculate_sha256",
        "Calculate the SHA256 hash of a given string input. Returns the lowercase hexadecimal digest of its UTF-8 bytes.",
        HASH_SCHEMA,
        tool_sha256,
    ))
    registry.register(ToolDescriptor(
        "count_character",
        "Count occurrences of a character in a string (case-insensitive), with 0-indexed positions.",
        COUNT_SCHEMA,
        tool_count_character,
    ))
    registry.register(ToolDescriptor(
        "calculate_mortgage_payment",
        "Calculate monthly mortgage payment, total amount paid and total interest from loan amount, "
        f"annual interest rate (percentage) and term in years. Uses the formula {MORTGAGE_FORMULA}.",
        MORTGAGE_SCHEMA,
        tool_mortgage,
    ))
    registry.register(ToolDescriptor(
        "get_population_data",
        "Get current population data for a country from REST Countries API: population, official name, "
        "capital, region and subregion.",
        POPULATION_SCHEMA,
        make_population_tool(countries or CountriesClient()),
    ))
    return registry.freeze()
