#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
webtoepub - 网络小说站点内容提取
    只读取公开页面，不保存任何文件
    提取结果通过 --json 交给打包阶段
"""

import sys


def main():
    """主入口点 - 启动CLI界面"""
    from webtoepub.cli import main as cli_main
    sys.exit(cli_main())


if __name__ == "__main__":
    main()
