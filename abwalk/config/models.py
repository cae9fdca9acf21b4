from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .backends import DEFAULT_BACKEND, EncoderBackend, get_backend

DEFAULT_X265_PARAMS = "x265-params=limit-sao,bframes=8,psy-rd=1,aq-mode=3"
DEFAULT_MIN_SIZE_BYTES = 400_000_000


class GeneralConfig(BaseModel):
    debug: bool = False
    log_path: Optional[str] = None  # default: <folder>/abwalk.log
    clear_screen: bool = True


class EncodeJobConfig(BaseModel):
    """Resolved once before the batch starts; read-only afterwards."""

    model_config = ConfigDict(validate_assignment=True)

    quality: int = Field(default=95, ge=1, le=100)
    min_quality: int = Field(default=1, ge=1, le=100)
    encoder: str = DEFAULT_BACKEND
    params: str = DEFAULT_X265_PARAMS
    pix_fmt: str = "yuv420p10le"
    preset: Optional[str] = None  # None -> backend default
    audio_codec: str = "aac"
    downmix_to_stereo: bool = True

    @field_validator("encoder")
    @classmethod
    def validate_encoder(cls, v: str) -> str:
        get_backend(v)
        return v

    @model_validator(mode="after")
    def validate_quality_floor(self):
        if self.min_quality > self.quality:
            raise ValueError("min_quality must be <= quality")
        return self

    @property
    def backend(self) -> EncoderBackend:
        return get_backend(self.encoder)

    @property
    def codec_tag(self) -> str:
        return self.backend.codec_tag

    @property
    def effective_preset(self) -> Optional[str]:
        return self.preset if self.preset is not None else self.backend.default_preset


class FilterConfig(BaseModel):
    model_config = ConfigDict(validate_assignment=True)

    min_size_bytes: int = Field(default=DEFAULT_MIN_SIZE_BYTES, ge=0)
    sample_marker: str = Field(default="sample", min_length=1)


class RetryConfig(BaseModel):
    """Policy for TRANSIENT outcomes. max_transient_retries=None never gives up."""

    model_config = ConfigDict(validate_assignment=True)

    max_transient_retries: Optional[int] = Field(default=3, ge=0)
    transient_delay_s: float = Field(default=0.0, ge=0.0)
    backoff_factor: float = Field(default=2.0, ge=1.0)
    max_delay_s: float = Field(default=60.0, ge=0.0)
    transient_exit_codes: List[int] = Field(default_factory=lambda: [145])

    @field_validator("transient_exit_codes")
    @classmethod
    def validate_exit_codes(cls, v: List[int]) -> List[int]:
        if 0 in v:
            raise ValueError("Exit code 0 means success and cannot be transient")
        return v

    def delay_for(self, retry_index: int) -> float:
        """Delay before the retry_index-th consecutive transient retry (0-based)."""
        if self.transient_delay_s <= 0:
            return 0.0
        return min(self.transient_delay_s * (self.backoff_factor ** retry_index), self.max_delay_s)


class ToolConfig(BaseModel):
    name: str = "ab-av1"
    path: Optional[str] = None


class UiConfig(BaseModel):
    activity_feed_max_items: int = Field(default=8, ge=1, le=50)
    refresh_per_second: int = Field(default=4, ge=1, le=30)


class AppConfig(BaseModel):
    general: GeneralConfig = Field(default_factory=GeneralConfig)
    encode: EncodeJobConfig = Field(default_factory=EncodeJobConfig)
    filter: FilterConfig = Field(default_factory=FilterConfig)
    retry: RetryConfig = Field(default_factory=RetryConfig)
    tool: ToolConfig = Field(default_factory=ToolConfig)
    ui: UiConfig = Field(default_factory=UiConfig)
