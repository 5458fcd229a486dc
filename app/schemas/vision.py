"""Vision (job sheet OCR) schemas."""

from typing import Optional

from pydantic import BaseModel


class Accessories(BaseModel):
    powerAdapter: bool = False
    powerCord: bool = False
    carryCase: bool = False
    battery: bool = False
    others: Optional[str] = None


class ExtractionResult(BaseModel):
    """Fields the model is asked to read off a repair job sheet. All nullable."""

    jobNumber: Optional[str] = None
    customerName: Optional[str] = None
    customerMobileNo: Optional[str] = None
    customerEmail: Optional[str] = None
    item: Optional[str] = None
    make: Optional[str] = None
    model: Optional[str] = None
    serialNumber: Optional[str] = None
    date: Optional[str] = None
    accessories: Optional[Accessories] = None
    remarks: Optional[str] = None
    handwrittenNotes: Optional[str] = None


class ExtractedForm(ExtractionResult):
    """Extraction plus the flat fields the job form is filled from."""

    brand: str = ""
    phoneNumber: str = ""
    issue: str = ""


class VisionExtractRequest(BaseModel):
    """JSON upload: raw base64 or a data URI."""

    image: Optional[str] = None


class VisionExtractResponse(BaseModel):
    success: bool = True
    data: ExtractedForm
