"""
LedgerLoop — Invoice Document Extraction

Raw invoice document (PDF or image) → scanned invoice awaiting human review:
  {id, customerName, amount, dueDate, status: "Unpaid", confidence, issue?}

confidence is the model's own quality call (high | medium | low); issue says
what is wrong with the document (blurry, cut off, not an invoice).

No API key → demo record. Any failure → None, so the caller can tell the user
nothing was extracted.
"""
import base64
import random
from datetime import date

from ledgerloop.config import USE_REAL_API, EXTRACTION_CONFIDENCE_LEVELS
from ledgerloop.ai import call_claude_json

# ============================================================
# PROMPT
# ============================================================
EXTRACTION_PROMPT = """You are a diligent junior accountant. Extract structured data from this invoice document.

Return ONLY valid JSON (no markdown, no explanation) with this exact structure:
{
  "id": "the invoice number",
  "customerName": "the customer being billed",
  "amount": 1234.56,
  "dueDate": "YYYY-MM-DD (if only an invoice date is present, use that)",
  "confidence": "high" or "medium" or "low",
  "issue": "short description of any quality problem, or null"
}

QUALITY CHECK:
- If the document is blurry, cut off, or doesn't look like an invoice, set confidence to "low" and describe the problem in issue.
- If you are unsure about specific numbers, set confidence to "medium".
- Otherwise set confidence to "high".
- amount is the invoice total as a plain number."""

SUPPORTED_IMAGE_TYPES = ["image/jpeg", "image/png", "image/gif", "image/webp"]


def _content_block(content: bytes, media_type: str) -> dict:
    b64_data = base64.standard_b64encode(content).decode("utf-8")
    if media_type == "application/pdf":
        return {"type": "document", "source": {"type": "base64", "media_type": "application/pdf", "data": b64_data}}
    img_type = media_type if media_type in SUPPORTED_IMAGE_TYPES else "image/png"
    return {"type": "image", "source": {"type": "base64", "media_type": img_type, "data": b64_data}}


def normalize_scanned_invoice(data) -> dict:
    """Coerce a collaborator reply into a scanned invoice. None if it is unusable."""
    if not isinstance(data, dict):
        return None
    inv_id = str(data.get("id") or "").strip()
    amount = data.get("amount")
    if not inv_id or isinstance(amount, bool):
        return None
    try:
        amount = round(float(amount), 2)
    except (TypeError, ValueError):
        return None

    confidence = data.get("confidence")
    if confidence not in EXTRACTION_CONFIDENCE_LEVELS:
        confidence = "low"
    scanned = {"id": inv_id, "customerName": data.get("customerName") or "Unknown",
               "amount": amount, "dueDate": str(data.get("dueDate") or ""),
               "status": "Unpaid", "confidence": confidence}
    if data.get("issue"):
        scanned["issue"] = str(data["issue"])
    return scanned


def demo_scanned_invoice() -> dict:
    return {"id": f"INV-{random.randint(0, 999)}", "customerName": "Demo Customer Inc",
            "amount": float(random.randint(100, 5099)), "dueDate": date.today().isoformat(),
            "status": "Unpaid", "confidence": "medium", "issue": "Demo Mode: API Key missing"}


async def parse_invoice_document(content: bytes, file_name: str, media_type: str) -> dict:
    """Extract one invoice from an uploaded document."""
    if not USE_REAL_API:
        print(f"[Extract] ANTHROPIC_API_KEY not configured — demo record for '{file_name}'")
        return demo_scanned_invoice()

    print(f"[Extract] Extracting '{file_name}' ({media_type})")
    try:
        data = await call_claude_json(EXTRACTION_PROMPT, "Extract",
                                      content_blocks=[_content_block(content, media_type)])
    except Exception as e:
        print(f"[Extract] Failed for '{file_name}': {type(e).__name__}: {e}")
        return None

    scanned = normalize_scanned_invoice(data)
    if scanned is None:
        print(f"[Extract] No usable invoice data in '{file_name}'")
    return scanned


def to_ledger_invoice(scanned: dict) -> dict:
    """Approved scan → ledger invoice (review-only fields stripped)."""
    return {k: v for k, v in scanned.items() if k not in ("confidence", "issue")}
