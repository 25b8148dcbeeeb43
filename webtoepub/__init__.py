"""webtoepub：网络小说/漫画站点内容提取框架"""

__version__ = '1.0.0'
