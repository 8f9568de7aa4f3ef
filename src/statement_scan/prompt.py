from __future__ import annotations

from typing import Optional, Sequence


DEFAULT_PROMPT = """You are a bank transaction extractor. Analyze this banking app screenshot carefully.

TASK: Extract every visible transaction into a JSON array.

For each transaction row, extract:
1. date: Look for date headers like "Sun 02 Nov 2025" → convert to "2025-11-02"
2. description: The merchant name (first line of each transaction)
3. category: The category text below merchant name (like "Groceries", "Eating out & takeaway")
4. amount: The dollar amount as a number (e.g., 24.35 from "-$24.35")
5. type: "expense" if shows "-$", "income" if no minus sign or green colored

RULES:
- SKIP any transaction where the amount is covered or hidden
- Do NOT invent transactions - only extract what's visible
- Keep exact decimals (24.35 not 24)
- Each transaction appears once only

OUTPUT FORMAT - Return ONLY this JSON array, nothing else:
[{"date":"2025-11-02","description":"KFC (Sebastopol)","category":"Eating out & takeaway","amount":24.35,"type":"expense"}]

If no transactions visible, return: []"""


def _currency_hint(currency: str) -> str:
    return (
        f"\n\nCURRENCY: Amounts are in {currency}. Output plain numbers without "
        "currency symbols or thousands separators."
    )


def _split_hint(members: Sequence[str]) -> str:
    names = ", ".join(f'"{m}"' for m in members)
    return (
        "\n\nSPLIT CONTEXT: This ledger is shared by these members: "
        f"[{names}].\n"
        "For each transaction also add:\n"
        f'- payer: the member who paid (default "{members[0]}")\n'
        "- involved: array of members sharing the cost (default: all members)\n"
        '- splitType: "equal" unless the receipt shows per-person items, then "custom"\n'
        '- items: only for "custom", an array of {"name","amount","involved"} per line item\n'
        "Use member names exactly as listed."
    )


def build_prompt(
    prompt: Optional[str] = None,
    *,
    members: Optional[Sequence[str]] = None,
    currency: Optional[str] = None,
) -> str:
    """Return the instruction text sent alongside the image.

    A caller-supplied prompt replaces the default; currency and member hints
    are appended to either.
    """
    text = prompt.strip() if isinstance(prompt, str) and prompt.strip() else DEFAULT_PROMPT
    if isinstance(currency, str) and currency.strip():
        text += _currency_hint(currency.strip().upper())
    if members:
        text += _split_hint(list(members))
    return text
