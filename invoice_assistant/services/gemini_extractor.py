from loguru import logger
from google import genai
from google.genai import types
from pydantic import ValidationError
from ..core.config import settings
from ..models.invoice import ExtractedFields

EXTRACTION_PROMPT = (
    "請分析這張發票並提取以下資訊：日期 (YYYY/MM/DD)、發票號碼、賣方名稱、總金額。"
    "如果有多個項目也請提取明細。請以繁體中文回答。"
)

INVOICE_SCHEMA = types.Schema(
    type=types.Type.OBJECT,
    properties={
        "date": types.Schema(type=types.Type.STRING, description="發票日期格式 YYYY/MM/DD"),
        "number": types.Schema(type=types.Type.STRING, description="發票號碼"),
        "vendor": types.Schema(type=types.Type.STRING, description="商家名稱"),
        "totalAmount": types.Schema(type=types.Type.NUMBER, description="總金額"),
        "items": types.Schema(
            type=types.Type.ARRAY,
            items=types.Schema(
                type=types.Type.OBJECT,
                properties={
                    "name": types.Schema(type=types.Type.STRING, description="品項名稱"),
                    "quantity": types.Schema(type=types.Type.NUMBER, description="數量"),
                    "price": types.Schema(type=types.Type.NUMBER, description="單價"),
                },
                required=["name", "quantity", "price"],
            ),
        ),
    },
    required=["date", "number", "vendor", "totalAmount"],
)


class ExtractionError(Exception):
    """The remote model call failed or its answer did not match INVOICE_SCHEMA."""


class GeminiInvoiceExtractor:
    """
    Thin async wrapper around the Gemini generate_content call.

    Stateless apart from the lazily created SDK client; one call per image,
    no retries. Every failure surfaces as ExtractionError with the original
    exception chained as its cause.
    """

    def __init__(self, api_key: str | None = None, model: str | None = None, client=None):
        self.api_key = api_key
        self.model = model or settings.gemini_model
        self._client = client

    def _get_client(self):
        if self._client is None:
            api_key = self.api_key or settings.gemini_api_key
            if not api_key:
                raise ExtractionError("GEMINI_API_KEY not set - cannot call the extraction model")
            self._client = genai.Client(api_key=api_key)
        return self._client

    async def extract(self, image_bytes: bytes, mime_type: str) -> ExtractedFields:
        client = self._get_client()

        logger.info(
            "Sending invoice image to Gemini",
            model=self.model,
            mime_type=mime_type,
            size_bytes=len(image_bytes),
        )

        try:
            response = await client.aio.models.generate_content(
                model=self.model,
                contents=[
                    types.Part.from_bytes(data=image_bytes, mime_type=mime_type),
                    EXTRACTION_PROMPT,
                ],
                config=types.GenerateContentConfig(
                    response_mime_type="application/json",
                    response_schema=INVOICE_SCHEMA,
                ),
            )
            text = response.text
        except Exception as e:
            logger.error(f"Gemini extraction failed: {e}")
            raise ExtractionError(f"Invoice extraction failed: {e}") from e

        if not text:
            raise ExtractionError("Gemini returned an empty response")

        try:
            fields = ExtractedFields.model_validate_json(text)
        except ValidationError as e:
            logger.error(f"Gemini response did not match the invoice schema: {e}")
            raise ExtractionError(f"Malformed extraction response: {e}") from e

        logger.info(
            "Extracted invoice fields",
            vendor=fields.vendor,
            number=fields.number,
            total_amount=fields.total_amount,
            item_count=len(fields.items),
        )
        return fields


async def extract_invoice_fields(image_bytes: bytes, mime_type: str) -> ExtractedFields:
    return await GeminiInvoiceExtractor().extract(image_bytes, mime_type)
