from threading import Lock
from typing import Dict, List, Tuple
import string
from urllib.parse import urlparse

# 尝试导入rich库用于美化界面
try:
    from rich.console import Console
    from rich.panel import Panel
    from rich.table import Table
    from rich import box
    RICH_AVAILABLE = True
except ImportError:
    RICH_AVAILABLE = False

__all__ = [
    'RICH_AVAILABLE',
    'console',
    'safe_print',
    'debug_print',
    'set_debug',
    'print_status_table',
    'print_chapter_summary',
    'parse_chapter_range',
    'clean_and_validate_url',
]

print_lock = Lock()

# 全局变量
console = Console(stderr=True) if RICH_AVAILABLE else None
_debug = False


def set_debug(enabled: bool) -> None:
    global _debug
    _debug = enabled


def safe_print(*args, **kwargs):
    """线程安全的打印函数"""
    with print_lock:
        if RICH_AVAILABLE and console:
            # 使用rich的console输出
            message = ' '.join(str(arg) for arg in args)
            console.print(message, **kwargs)
        else:
            # 回退到普通print，移除style等rich特有的参数
            rich_only_kwargs = {'style', 'markup', 'highlight', 'overflow', 'no_wrap', 'emoji', 'justify', 'soft_wrap'}
            filtered_kwargs = {k: v for k, v in kwargs.items() if k not in rich_only_kwargs}
            print(*args, **filtered_kwargs)


def debug_print(*args, **kwargs):
    """仅在调试模式下输出"""
    if _debug:
        safe_print(*args, style="dim", **kwargs)


def print_status_table(info: Dict[str, str]):
    """打印状态信息表格"""
    if RICH_AVAILABLE and console:
        table = Table(box=box.ROUNDED, border_style="green")
        table.add_column("项目", style="cyan", no_wrap=True)
        table.add_column("值", style="magenta")

        for key, value in info.items():
            table.add_row(key, value)

        console.print(table)
    else:
        for key, value in info.items():
            print(f"{key}: {value}")


def print_chapter_summary(chapters: List, range_info: str = ""):
    """打印章节摘要信息"""
    locked = sum(1 for c in chapters if not c.is_includeable)
    if RICH_AVAILABLE and console:
        info_text = f"📚 总章节数: [bold green]{len(chapters)}[/bold green]"
        if locked:
            info_text += f"\n🔒 不可下载: [bold red]{locked}[/bold red]"
        if range_info:
            info_text += f"\n📖 选择范围: [bold yellow]{range_info}[/bold yellow]"

        if len(chapters) > 0:
            info_text += f"\n🔖 首章: [italic]{chapters[0].title}[/italic]"
            info_text += f"\n🔖 末章: [italic]{chapters[-1].title}[/italic]"

        panel = Panel(
            info_text,
            title="📋 章节信息",
            border_style="blue",
            box=box.ROUNDED
        )
        console.print(panel)
    else:
        print(f"📚 总章节数: {len(chapters)}")
        if locked:
            print(f"🔒 不可下载: {locked}")
        if range_info:
            print(f"📖 选择范围: {range_info}")
        if len(chapters) > 0:
            print(f"🔖 首章: {chapters[0].title}")
            print(f"🔖 末章: {chapters[-1].title}")


def parse_chapter_range(range_input: str, total_chapters: int) -> Tuple[int, int]:
    """
    解析用户输入的章节范围，如 '1-10', '5:', ':20', '8', '100+'。
    返回一个 (start, end) 的元组（基于1的索引）。
    """
    range_input = range_input.strip()
    if not range_input:
        return 1, total_chapters

    if range_input.isdigit():
        val = int(range_input)
        if 1 <= val <= total_chapters:
            return val, val
        else:
            raise ValueError("单个章节号超出范围。")

    if range_input.endswith('+') and range_input[:-1].isdigit():
        range_input = range_input[:-1] + ':'

    if '-' in range_input or ':' in range_input:
        sep = '-' if '-' in range_input else ':'
        start_str, end_str = range_input.split(sep, 1)

        start = int(start_str) if start_str else 1
        end = int(end_str) if end_str else total_chapters

        start = max(1, start)
        end = min(total_chapters, end)

        if start > end:
            raise ValueError("开始章节不能大于结束章节。")

        return start, end

    raise ValueError("无法识别的范围格式。请使用 '1-10', '5:', ':20', '100+' 或 '8' 等格式。")


def clean_and_validate_url(url: str) -> str:
    """
    清理和验证URL，移除异常字符并确保格式正确

    Args:
        url: 原始URL字符串

    Returns:
        str: 清理后的有效URL

    Raises:
        ValueError: 如果URL格式无效
    """
    if not url:
        raise ValueError("URL不能为空")

    url = url.strip()

    # 复制粘贴时常混入的全角标点
    abnormal_chars = ['】', '【', '」', '「', '》', '《', '）', '（', '｝', '｛', '］', '［']
    for char in abnormal_chars:
        url = url.replace(char, '')

    printable_chars = set(string.printable)
    url = ''.join(char for char in url if char in printable_chars).strip()

    if not url.startswith(('http://', 'https://')):
        if url.startswith('www.') or '.' in url:
            url = 'https://' + url
        else:
            raise ValueError(f"无效的URL格式: {url}")

    parsed = urlparse(url)
    if not parsed.netloc:
        raise ValueError(f"URL缺少域名部分: {url}")

    return url
