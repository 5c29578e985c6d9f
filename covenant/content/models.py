"""
Site content models served to the website
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class ContentSection(BaseModel):
    type: str
    text: Optional[str] = None
    url: Optional[str] = None
    alt: Optional[str] = None
    caption: Optional[str] = None
    html: Optional[str] = None


class CoverImage(BaseModel):
    url: str
    alt: Optional[str] = None


class Article(BaseModel):
    slug: str
    title: str
    description: Optional[str] = None
    excerpt: Optional[str] = None
    coverImage: Optional[CoverImage] = None
    category: Optional[str] = None
    tags: Optional[List[str]] = None
    publishedAt: Optional[str] = None
    readingTime: Optional[str] = None
    sections: List[ContentSection] = Field(default_factory=list)
    escapeRoomGeneralData: Optional[Dict[str, Any]] = None
    escapeRoomScoring: Optional[Dict[str, Any]] = None


class NavLink(BaseModel):
    label: str
    href: str


class Navigation(BaseModel):
    primary: List[NavLink]
    secondary: List[NavLink]


class CTA(BaseModel):
    label: str
    href: str


class Hero(BaseModel):
    title: str
    description: str
    cta: CTA


class SiteContent(BaseModel):
    hero: Hero
    highlight: str
    articles: List[Article]
    featured: List[str]
    navigation: Navigation

    def article(self, slug: str) -> Optional[Article]:
        normalised = slug.lstrip("/")
        return next((article for article in self.articles if article.slug == normalised), None)

    def highlight_article(self) -> Optional[Article]:
        return self.article(self.highlight)

    def featured_articles(self) -> List[Article]:
        by_slug = {article.slug: article for article in self.articles}
        return [by_slug[slug] for slug in self.featured if slug in by_slug]
