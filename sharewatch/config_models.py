"""Shared Pydantic models for project configuration files."""

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field, model_validator


class StaticItem(BaseModel):
    title: str
    link: str
    owner: Optional[str] = None


class ItemsConfig(BaseModel):
    feed_url: Optional[str] = None
    base_url: str = ""
    backlog_days: int = Field(120, gt=0)
    allow_domains: List[str] = Field(default_factory=list)
    static: List[StaticItem] = Field(default_factory=list)

    @model_validator(mode="after")
    def check_source(self):
        if not self.feed_url and not self.static:
            raise ValueError("items needs a feed_url or a static list")
        return self


class TwitterConfig(BaseModel):
    max_results: int = Field(100, ge=10, le=100)
    max_pages: int = Field(3, gt=0)
    timeout_sec: int = Field(20, gt=0)


class ThresholdsConfig(BaseModel):
    growth_factor: float = Field(2, ge=1)


class OutputsConfig(BaseModel):
    use_email: bool = True
    use_pushover: bool = True
    priority: int = Field(0, ge=-2, le=1)


class TestingConfig(BaseModel):
    dry_run: bool = False


class SettingsConfig(BaseModel):
    schedule_seconds: int = Field(..., gt=0)
    items: ItemsConfig
    twitter: TwitterConfig = Field(default_factory=TwitterConfig)
    thresholds: ThresholdsConfig = Field(default_factory=ThresholdsConfig)
    outputs: OutputsConfig = Field(default_factory=OutputsConfig)
    testing: TestingConfig = Field(default_factory=TestingConfig)
