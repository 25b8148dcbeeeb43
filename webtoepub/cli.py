#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
webtoepub - 命令行接口
Site adapter extraction framework - Command Line Interface

只负责展示和把提取结果交给打包阶段（--json 输出到 stdout），不写任何文件。
"""

import argparse
import asyncio
import json
import signal
import sys
from typing import List, Optional

from .adapters import build_registry
from .errors import ExtractionCancelledError, WebToEpubError
from .models import CancellationToken, ChapterResult, ExtractionConfig
from .modules.fetcher import FetchClient
from .pipeline import ExtractionPipeline, packaging_payload
from .utils import (RICH_AVAILABLE, clean_and_validate_url, console,
                    parse_chapter_range, print_chapter_summary,
                    print_status_table, safe_print, set_debug)

if RICH_AVAILABLE:
    from rich.panel import Panel
    from rich.progress import (BarColumn, Progress, TextColumn,
                               TimeElapsedColumn, TimeRemainingColumn)
    from rich.table import Table
    from rich import box


def create_cli_parser() -> argparse.ArgumentParser:
    """创建命令行参数解析器"""
    parser = argparse.ArgumentParser(
        prog='webtoepub',
        description='📚 webtoepub - 网络小说站点内容提取',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
使用示例:
  webtoepub -u https://www.royalroad.com/fiction/12345/some-story     # 显示书籍信息和章节列表
  webtoepub -u URL --fetch -r 1-20 --workers 3                       # 抓取前20章
  webtoepub -u URL --adapter Wordpress                               # 手动指定适配器
  webtoepub -u URL --fetch --json > book.json                        # 输出给打包阶段
  webtoepub --list-sites                                             # 显示支持的网站

章节范围格式:
  100-200    第100到200章
  50:        从第50章开始
  :100       前100章
  100+       从第100章开始到结尾
  150        只要第150章
        """
    )

    parser.add_argument('-u', '--url', help='书籍目录页URL')
    parser.add_argument('--adapter', help='手动指定适配器 (跳过URL匹配)')
    parser.add_argument('-r', '--range', help='章节范围 (例: 1-100, 50:, :100, 100+, 150)')
    parser.add_argument('--fetch', action='store_true', help='抓取所选章节的正文')
    parser.add_argument('--workers', type=int, default=1,
                        help='并发抓取数 (1-10, 默认: 1)')
    parser.add_argument('--delay', type=float, default=0.0,
                        help='章节之间的间隔秒数 (站点要求更长时以站点为准)')
    parser.add_argument('--encoding', help='强制指定页面编码 (例: gbk)')
    parser.add_argument('--timeout', type=float, default=15.0, help='请求超时秒数 (默认: 15)')
    parser.add_argument('--skip-failed', action='store_true', help='跳过抓取失败的章节而不是中止')
    parser.add_argument('--json', action='store_true', help='以JSON格式把结果输出到标准输出')
    parser.add_argument('--list-sites', action='store_true', help='显示支持的网站列表')
    parser.add_argument('--debug', action='store_true', help='启用调试模式')
    parser.add_argument('--version', action='version', version='%(prog)s v1.0.0')

    return parser


def show_supported_sites() -> None:
    """显示支持的网站列表"""
    registry = build_registry()
    hostnames = registry.registered_hostnames()

    if RICH_AVAILABLE and console:
        table = Table(title="🌐 支持的网站列表", box=box.ROUNDED, border_style="blue")
        table.add_column("域名", style="cyan")
        table.add_column("状态")
        for hostname, dead in hostnames:
            table.add_row(hostname, "[red]已失效[/red]" if dead else "[green]可用[/green]")
        console.print(table)
    else:
        print("🌐 支持的网站列表:")
        print("=" * 50)
        for hostname, dead in hostnames:
            print(f"📚 {hostname}{' (已失效)' if dead else ''}")

    safe_print(f"🧩 可手动指定的适配器: {', '.join(registry.manual_names())}")
    safe_print("💡 提示: *.wordpress.com 的站点会自动使用 Wordpress 适配器")


def build_config(args) -> ExtractionConfig:
    return ExtractionConfig(
        timeout=args.timeout,
        workers=max(1, min(10, args.workers)),
        delay=max(0.0, args.delay),
        skip_failed=args.skip_failed,
        encoding=args.encoding,
    )


def install_cancel_handler(token: CancellationToken) -> None:
    """第一次 Ctrl+C 请求取消（当前请求完成后停止），第二次直接中断"""
    def handler(signum, frame):
        if token.is_cancelled:
            raise KeyboardInterrupt
        token.cancel()
        safe_print("\n⏹️ [yellow]已请求取消，正在等待当前请求完成... (再按一次 Ctrl+C 强制退出)[/yellow]")
    signal.signal(signal.SIGINT, handler)


def show_completion_stats(results: List[ChapterResult]) -> None:
    """显示抓取完成后的统计信息"""
    success_count = sum(1 for r in results if r.ok)
    failures = [r for r in results if not r.ok]

    if not RICH_AVAILABLE:
        safe_print("\n" + "=" * 20)
        safe_print("抓取完成!")
        safe_print(f"成功: {success_count}")
        if failures:
            safe_print(f"失败: {len(failures)}")
        safe_print("=" * 20)
        return

    stats_table = Table(title="📊 抓取统计", show_header=False, box=None)
    stats_table.add_column(style="green")
    stats_table.add_column(style="bold magenta")
    stats_table.add_row("✅ 成功抓取:", f"{success_count} 章")
    if failures:
        stats_table.add_row("❌ 抓取失败:", f"[red]{len(failures)} 章[/red]")

    console.print(Panel(
        stats_table,
        title="🎉 [bold green]抓取完成[/bold green] 🎉",
        expand=False,
        border_style="green"
    ))

    for result in failures[:5]:
        safe_print(f"❌ '{result.reference.title}': {result.error}")
    if len(failures) > 5:
        safe_print(f"... 还有 {len(failures) - 5} 个错误未显示")


async def fetch_chapters_with_progress(pipeline: ExtractionPipeline, book, chapters, token) -> List[ChapterResult]:
    """使用rich进度条抓取章节"""
    if not (RICH_AVAILABLE and console):
        def report(done, total, result):
            safe_print(f"[{done}/{total}] {'✅' if result.ok else '❌'} {result.reference.title}")
        return await pipeline.extract_chapters(book, cancel_token=token, chapters=chapters, progress=report)

    progress = Progress(
        TextColumn("[bold blue]抓取进度", justify="right"),
        BarColumn(bar_width=None),
        "[progress.percentage]{task.percentage:>3.1f}%",
        "•",
        TextColumn("[green]{task.completed} of {task.total}"),
        "•",
        TimeElapsedColumn(),
        "•",
        TimeRemainingColumn(),
        transient=False,
        console=console
    )
    with progress:
        task = progress.add_task("抓取中...", total=len([c for c in chapters if c.is_includeable]))
        return await pipeline.extract_chapters(
            book,
            cancel_token=token,
            chapters=chapters,
            progress=lambda done, total, result: progress.advance(task, advance=1),
        )


async def run(args, token: CancellationToken) -> int:
    try:
        url = clean_and_validate_url(args.url)
    except ValueError as e:
        safe_print(f"❌ {e}", style="bold red")
        return 2

    config = build_config(args)
    registry = build_registry()

    async with FetchClient(headers=config.headers, timeout=config.timeout) as client:
        pipeline = ExtractionPipeline(registry, client, config)
        safe_print(f"📖 目标URL: [blue]{url}[/blue]", style="cyan")

        if RICH_AVAILABLE and console:
            with console.status("[yellow]🔍 正在获取章节列表...[/yellow]") as status:
                def toc_progress(done, total):
                    status.update(f"[yellow]🔍 正在读取目录页 {done}{f'/{total}' if total else ''}...[/yellow]")
                book = await pipeline.load_book(url, args.adapter, token, toc_progress)
        else:
            safe_print("🔍 正在获取章节列表...")
            book = await pipeline.load_book(url, args.adapter, token)

        if not book.chapters:
            safe_print("❌ 未找到章节列表", style="bold red")
            return 1

        print_status_table({
            "适配器": book.adapter.name,
            "书名": book.metadata.title,
            "作者": book.metadata.author,
            "语言": book.metadata.language or "-",
            "标签": book.metadata.subject or "-",
            "封面": book.metadata.cover_url or "-",
        })

        chapters = book.chapters
        if args.range:
            try:
                start, end = parse_chapter_range(args.range, len(chapters))
            except ValueError as e:
                safe_print(f"❌ [red]章节范围错误: {e}[/red]")
                return 2
            chapters = chapters[start - 1:end]
        print_chapter_summary(chapters, args.range or "")

        results: Optional[List[ChapterResult]] = None
        if args.fetch:
            results = await fetch_chapters_with_progress(pipeline, book, chapters, token)
            show_completion_stats(results)

    if args.json:
        payload = packaging_payload(book, results)
        if args.range:
            payload['chapters'] = [c.to_dict() for c in chapters]
        sys.stdout.write(json.dumps(payload, ensure_ascii=False, indent=2) + "\n")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    parser = create_cli_parser()
    args = parser.parse_args(argv)
    set_debug(args.debug)

    if args.list_sites:
        show_supported_sites()
        return 0
    if not args.url:
        parser.error("必须提供 -u/--url 或 --list-sites")

    token = CancellationToken()
    install_cancel_handler(token)
    try:
        return asyncio.run(run(args, token))
    except ExtractionCancelledError:
        safe_print("👋 用户取消，程序退出", style="yellow")
        return 130
    except KeyboardInterrupt:
        safe_print("\n👋 用户中断，程序退出", style="yellow")
        return 130
    except WebToEpubError as e:
        safe_print(f"❌ {e}", style="bold red")
        return 1


if __name__ == "__main__":
    sys.exit(main())
