from __future__ import annotations

# 提取框架的各个子模块
from .utils import (
    detect_encoding,
    is_blocked_response,
    element_text,
    hyperlink_to_chapter,
    hyperlinks_to_chapter_list,
    get_first_img_src,
    remove_elements,
    remove_child_elements_matching_selector,
    move_child_elements,
    move_if_parent,
    resolve_lazy_loaded_images,
    move_footnotes,
    gather_or_cancel,
)
from .fetcher import FetchClient, RequestsTransport, parse_html
from .decode_table import DecodeTable
from .sanitizer import ContentSanitizer, GLOBAL_RULES, remove_matching
from .catalog import (
    find_next_toc_page,
    extract_generic_chapter_list,
    get_chapters_from_all_toc_pages,
    walk_toc_pages,
)
from .content import walk_pages_of_chapter, stitch_additional_pages
from .metadata import extract_metadata, extract_novel_title, cover_url_from_style, get_cover_from_style

__all__ = [
    'detect_encoding',
    'is_blocked_response',
    'element_text',
    'gather_or_cancel',
    'hyperlink_to_chapter',
    'hyperlinks_to_chapter_list',
    'get_first_img_src',
    'remove_elements',
    'remove_child_elements_matching_selector',
    'move_child_elements',
    'move_if_parent',
    'resolve_lazy_loaded_images',
    'move_footnotes',

    'FetchClient',
    'RequestsTransport',
    'parse_html',

    'DecodeTable',

    'ContentSanitizer',
    'GLOBAL_RULES',
    'remove_matching',

    'find_next_toc_page',
    'extract_generic_chapter_list',
    'get_chapters_from_all_toc_pages',
    'walk_toc_pages',

    'walk_pages_of_chapter',
    'stitch_additional_pages',

    'extract_metadata',
    'extract_novel_title',
    'cover_url_from_style',
    'get_cover_from_style',
]
