"""Fictioneer 主题（WordPress）站点。定时发布的章节列在最后且默认不选"""
from __future__ import annotations

import re
from typing import List

from ..models import ChapterReference, RawDocument
from ..modules.sanitizer import remove_matching
from ..modules.utils import hyperlink_to_chapter
from .base import AdapterDescriptor, dead_site, host

__all__ = ['FICTIONEER', 'RULES']


async def get_chapter_urls(adapter, doc: RawDocument) -> List[ChapterReference]:
    chapters = [
        ChapterReference(doc.absolute_url(a['href']), a.get_text(' ', strip=True))
        for a in doc.select('.chapter-group__list ._publish a[href]')
    ]
    chapters.extend(
        ChapterReference(doc.absolute_url(a['href']), a.get_text(' ', strip=True), is_includeable=False)
        for a in doc.select('._future a[href]')
    )
    if not chapters:
        chapters = [hyperlink_to_chapter(a, doc.url) for a in doc.select('.chapter-group__list-item a[href]')]
    return chapters


def find_content(adapter, doc: RawDocument):
    return doc.select_one('.chapter-formatting') or doc.select_one('#chapter-content')


def preprocess_raw_dom(adapter, doc: RawDocument) -> None:
    content = find_content(adapter, doc)
    footnotes = doc.select_one('.chapter__footnotes')
    if content is not None and footnotes is not None:
        content.append(footnotes.extract())


def extract_author(adapter, doc: RawDocument):
    author = doc.select_one('a.author') or doc.select_one('.story__identity-meta')
    if author is None:
        return None
    return re.sub(r'^by ', '', author.get_text(' ', strip=True))


def find_chapter_title(adapter, doc: RawDocument):
    title = doc.select_one('.chapter__title')
    subtitle = doc.select_one('.chapter__second-title') or doc.select_one('.chapter__group')
    if title is None:
        return None
    text = title.get_text(' ', strip=True)
    if subtitle is not None and subtitle.get_text(strip=True):
        text += ': ' + subtitle.get_text(' ', strip=True)
    return text


def find_cover_image_url(adapter, doc: RawDocument):
    img = doc.select_one('.wp-post-image') or doc.select_one('figure.story__thumbnail img')
    if img is None or not img.get('src'):
        return None
    # 去掉缩略图尺寸参数
    return doc.absolute_url(img['src'].split('?', 1)[0])


def transform_content(adapter, content) -> None:
    for p in content.find_all('p'):
        for attr in ('id', 'data-paragraph-id'):
            if attr in p.attrs:
                del p[attr]
    for element in content.find_all(style='font-weight: 400;'):
        del element['style']


def extract_subject(adapter, doc: RawDocument):
    tags = [t.get_text(strip=True) for t in doc.select('.story__taxonomies .tag-pill')]
    return ', '.join(t for t in tags if t) or None


FICTIONEER = AdapterDescriptor(
    name='Fictioneer',
    get_chapter_urls=get_chapter_urls,
    find_content=find_content,
    preprocess_raw_dom=preprocess_raw_dom,
    removal_rules=(remove_matching('iframe, .eoc-chapter-groups, .chapter-nav, .related-stories-block'),),
    transform_content=transform_content,
    extract_title=lambda adapter, doc: doc.select_one('.story__identity-title'),
    extract_author=extract_author,
    extract_description=lambda adapter, doc: doc.select_one('.story__summary'),
    extract_subject=extract_subject,
    find_chapter_title=find_chapter_title,
    find_cover_image_url=find_cover_image_url,
)

RULES = [
    dead_site('blossomtranslation.com', FICTIONEER),
    dead_site('igniforge.com', FICTIONEER),
    dead_site('razentl.com', FICTIONEER),
    host('emberlib731.xyz', FICTIONEER),
    host('lilyonthevalley.com', FICTIONEER),
    host('novelib.com', FICTIONEER),
    host('smeraldogarden.com', FICTIONEER),
    host('springofromance.com', FICTIONEER),
]
