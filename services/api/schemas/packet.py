"""
Pydantic schemas for packet generation requests.

Field names are snake_case in Python and camelCase on the wire
(the wizard client sends `projectData`, `fileData`, `fireAssembly01`, ...).
"""
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

ProductType = Literal["structural-floor", "underlayment"]

DEFAULT_PRODUCT_SIZE = "3/4-in (20mm)"


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class StatusFlags(CamelModel):
    """Status / Action checkboxes on the cover page."""
    for_review: bool = False
    for_approval: bool = False
    for_record: bool = False
    for_information_only: bool = False


class SubmittalTypeFlags(CamelModel):
    """
    Submittal Type checkboxes on the cover page.

    The flags are normally derived from the selected documents
    (see core.submittal_types); `samples`, `other` and `other_text`
    only ever come from the caller.
    """
    tds: bool = False
    three_part_specs: bool = False
    test_report_icc_esr_5194: bool = False
    test_report_icc_esr_5192: bool = False
    test_report_icc_esl_1645: bool = False
    fire_assembly: bool = False
    fire_assembly_01: bool = False
    fire_assembly_02: bool = False
    fire_assembly_03: bool = False
    fire_assembly_04: bool = False
    fire_assembly_05: bool = False
    fire_assembly_06: bool = False
    fire_assembly_07: bool = False
    fire_assembly_08: bool = False
    fire_assembly_09: bool = False
    msds: bool = False
    leed_guide: bool = False
    installation_guide: bool = False
    warranty: bool = False
    samples: bool = False
    other: bool = False
    other_text: Optional[str] = None

    @classmethod
    def flag_names(cls) -> List[str]:
        """All boolean flag field names, in declaration order."""
        return [name for name in cls.model_fields if name != "other_text"]

    def merged_with(self, other: "SubmittalTypeFlags") -> "SubmittalTypeFlags":
        """OR both flag sets together; a set flag is never cleared."""
        values = {
            name: bool(getattr(self, name) or getattr(other, name))
            for name in self.flag_names()
        }
        values["other_text"] = self.other_text or other.other_text
        return SubmittalTypeFlags(**values)

    def to_wire(self) -> Dict[str, object]:
        return self.model_dump(by_alias=True, exclude_none=True)


class ProjectData(CamelModel):
    """
    Project metadata for the cover page.

    Upstream (the wizard) validates required fields; here every string
    is allowed to be empty.
    """
    product_type: ProductType = Field("structural-floor", description="Product category")
    submitted_to: str = ""
    project_name: str = ""
    prepared_by: str = ""
    project_number: Optional[str] = None
    email_address: str = ""
    phone_number: str = ""
    date: str = ""
    status: StatusFlags = Field(default_factory=StatusFlags)
    submittal_type: SubmittalTypeFlags = Field(default_factory=SubmittalTypeFlags)
    product_size: str = Field(DEFAULT_PRODUCT_SIZE, description="Product size label")
    # Older clients send the size as `product`
    product: Optional[str] = None

    @field_validator(
        "submitted_to",
        "project_name",
        "prepared_by",
        "email_address",
        "phone_number",
        "date",
        mode="before",
    )
    @classmethod
    def none_to_empty(cls, v):
        return "" if v is None else v

    @property
    def product_label(self) -> str:
        return self.product or self.product_size or DEFAULT_PRODUCT_SIZE

    @property
    def phone_email(self) -> str:
        return f"{self.phone_number} / {self.email_address}"


class DocumentRequest(CamelModel):
    """
    One document to merge into the packet.

    `file_data` (base64) is preferred; `url` is the fallback locator.
    """
    id: str = Field(..., description="Identifier, unique within the request")
    name: str = Field(..., description="Display name used on divider pages")
    url: str = ""
    type: str = ""
    file_data: Optional[str] = None
    order: Optional[int] = Field(None, description="Explicit rank; lower comes first")

    @field_validator("url", "type", mode="before")
    @classmethod
    def none_to_empty(cls, v):
        return "" if v is None else v


class GeneratePacketRequest(CamelModel):
    project_data: ProjectData = Field(default_factory=ProjectData)
    documents: List[DocumentRequest] = Field(..., description="Documents in desired final order")
    selected_document_names: Optional[List[str]] = None
    all_available_documents: Optional[List[str]] = None

    @field_validator("documents")
    @classmethod
    def unique_ids(cls, v: List[DocumentRequest]) -> List[DocumentRequest]:
        seen = set()
        for doc in v:
            if doc.id in seen:
                raise ValueError(f"Duplicate document id: {doc.id}")
            seen.add(doc.id)
        return v

    def ordered_documents(self) -> List[DocumentRequest]:
        """
        Documents in final packet order.

        Documents carrying an explicit `order` are sorted by it; the sort is
        stable and documents without a rank keep their array position as rank.
        """
        indexed = list(enumerate(self.documents))
        indexed.sort(key=lambda item: (item[1].order if item[1].order is not None else item[0], item[0]))
        return [doc for _, doc in indexed]

    def selected_names(self) -> List[str]:
        if self.selected_document_names is not None:
            return list(self.selected_document_names)
        return [doc.name for doc in self.ordered_documents()]

    def available_names(self) -> List[str]:
        return list(self.all_available_documents or [])


class ClassifyRequest(CamelModel):
    documents: List[DocumentRequest] = Field(default_factory=list)
