#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
本地测试服务器 - 模拟几种小说网站的页面结构
测试时通过 app.test_client() 调用，不需要真正监听端口

  /book/      下拉框分页目录 (dudushuge 结构)，3 页，每页 4 章
  /bq/        目录在单独页面，章节按 _2、_3 分页 (biquge 结构)
  /gbk/       章节页实际是 GBK 编码，但声明为 utf-8 (trxs 结构)
  /nepu/      正文字母被替换成混淆字形 (nepustation 结构)
  /helheim/   付费章节、懒加载图片、CSS 背景封面 (helheimscans 结构)
"""

from flask import Flask, render_template_string

app = Flask(__name__)

TOC_PAGES = 3
CHAPTERS_PER_PAGE = 4

# 模拟小说数据
NOVEL_DATA = {
    'title': '测试小说：Python爬虫历险记',
    'author': '测试作者',
    'intro': '这是一个专门用来测试提取功能的模拟小说网站。',
    'chapters': [],
}

for i in range(1, TOC_PAGES * CHAPTERS_PER_PAGE + 1):
    NOVEL_DATA['chapters'].append({
        'id': i,
        'title': f'第{i}章 测试章节{i}',
        'url': f'/book/{i}.html',
    })


def toc_page_url(page: int) -> str:
    return '/book/' if page == 1 else f'/book/index_{page}.html'


# --- 下拉框分页目录 ---

INDEX_TEMPLATE = '''
<!DOCTYPE html>
<html lang="zh-CN">
<head>
    <meta charset="UTF-8">
    <title>{{ novel.title }} - 测试小说网站</title>
</head>
<body>
<div class="top"><h1>{{ novel.title }}</h1></div>
<div class="fix"><p>作者：{{ novel.author }}</p><p>状态：连载中</p></div>
<div class="imgbox"><img src="/covers/book.jpg" alt="cover"></div>
<div class="desc">{{ novel.intro }}</div>
<div class="middle"><select>{% for p in pages %}<option value="{{ p.url }}"{% if p.page == page %} selected{% endif %}>第{{ p.page }}页</option>{% endfor %}</select></div>
<div class="main">
<div class="section-box"><h2>最新章节</h2></div>
<div class="section-box"><ul><li><a href="{{ novel.chapters[-1].url }}">{{ novel.chapters[-1].title }}</a></li></ul></div>
<h2>正文</h2>
<div class="section-box"><ul>{% for chapter in chapters %}<li><a href="{{ chapter.url }}">{{ chapter.title }}</a></li>{% endfor %}</ul></div>
</div>
</body>
</html>
'''

CHAPTER_TEMPLATE = '''
<!DOCTYPE html>
<html lang="zh-CN">
<head>
    <meta charset="UTF-8">
    <title>{{ chapter.title }} - {{ novel.title }}</title>
</head>
<body>
<h1>{{ chapter.title }}</h1>
<div id="content">
    <p>这是第{{ chapter.id }}章的内容。</p>
    <script>var ad = 1;</script>
    <p>第{{ chapter.id }}章结束。</p>
    <p><a href="/book/">返回目录</a></p>
    {% if next_chapter %}<p><strong><a href="{{ next_chapter.url }}">下一章</a></strong></p>{% endif %}
    <p><a href="https://other.example.org/promo">相关推荐</a></p>
</div>
</body>
</html>
'''


@app.route('/book/')
@app.route('/book/index_<int:page>.html')
def index(page=1):
    """目录页"""
    if page < 1 or page > TOC_PAGES:
        return "页面不存在", 404
    start_idx = (page - 1) * CHAPTERS_PER_PAGE
    chapters = NOVEL_DATA['chapters'][start_idx:start_idx + CHAPTERS_PER_PAGE]
    pages = [{'page': p, 'url': toc_page_url(p)} for p in range(1, TOC_PAGES + 1)]
    return render_template_string(INDEX_TEMPLATE,
                                  novel=NOVEL_DATA,
                                  chapters=chapters,
                                  pages=pages,
                                  page=page)


@app.route('/book/<int:chapter_id>.html')
def chapter(chapter_id):
    """章节页面"""
    if chapter_id < 1 or chapter_id > len(NOVEL_DATA['chapters']):
        return "章节不存在", 404
    chapter = NOVEL_DATA['chapters'][chapter_id - 1]
    next_chapter = None
    if chapter_id < len(NOVEL_DATA['chapters']):
        next_chapter = NOVEL_DATA['chapters'][chapter_id]
    return render_template_string(CHAPTER_TEMPLATE,
                                  novel=NOVEL_DATA,
                                  chapter=chapter,
                                  next_chapter=next_chapter)


# --- 分页章节 ---

BQ_BOOK_TEMPLATE = '''
<html><head><meta charset="utf-8"><title>{{ novel.title }}</title></head>
<body>
<div class="book">
  <h1>{{ novel.title }}</h1>
  <div class="cover"><img src="/covers/bq.jpg"></div>
  <div class="right"><h2>作者：<a href="/author/1">{{ novel.author }}</a></h2></div>
</div>
<div class="intro">{{ novel.intro }}</div>
<a class="chapterlist" href="/bq/list.html">完整目录</a>
</body></html>
'''

BQ_LIST_TEMPLATE = '''
<html><head><meta charset="utf-8"><title>目录</title></head>
<body>
<div class="booklist"><ul>
{% for n in range(1, 4) %}<li><a href="/bq/{{ n }}.html">第{{ n }}章</a></li>{% endfor %}
</ul></div>
</body></html>
'''

BQ_PAGE_TEMPLATE = '''
<html><head><meta charset="utf-8"><title>第{{ chapter }}章</title></head>
<body>
<div class="book"><h1>第{{ chapter }}章</h1></div>
<div id="chaptercontent">
  <p>{{ chapter }}-{{ page }}</p>
  <div class="pagination"><a href="#">1</a><a href="#">2</a></div>
</div>
<a id="next_url" href="{{ next_url }}">下一页</a>
</body></html>
'''

BQ_PAGES_PER_CHAPTER = {1: 3, 2: 1, 3: 2}


def _bq_page(chapter_id, page, next_url):
    return render_template_string(BQ_PAGE_TEMPLATE, chapter=chapter_id, page=page, next_url=next_url)


@app.route('/bq/')
def bq_book():
    return render_template_string(BQ_BOOK_TEMPLATE, novel=NOVEL_DATA)


@app.route('/bq/list.html')
def bq_list():
    return render_template_string(BQ_LIST_TEMPLATE)


@app.route('/bq/<int:chapter_id>.html')
@app.route('/bq/<int:chapter_id>_<int:page>.html')
def bq_chapter(chapter_id, page=1):
    if chapter_id == 9:
        # 分页链接成环：9_1 -> 9_2 -> 9_1
        return _bq_page(chapter_id, page, '/bq/9_2.html' if page == 1 else '/bq/9_1.html')
    total = BQ_PAGES_PER_CHAPTER.get(chapter_id)
    if total is None or page > total:
        return "章节不存在", 404
    if page < total:
        next_url = f'/bq/{chapter_id}_{page + 1}.html'
    else:
        next_url = f'/bq/{chapter_id + 1}.html'
    return _bq_page(chapter_id, page, next_url)


# --- 编码声明错误的站点 ---

GBK_TOC = '''
<html><head><meta charset="utf-8"><title>同人小说</title></head>
<body>
<div class="infos"><h1>同人小说</h1><p>简介</p><p>分类</p><p>这是简介内容</p></div>
<div class="book_list"><ul><li><a href="/gbk/1.html">第一章 开始</a></li></ul></div>
</body></html>
'''

GBK_CHAPTER = '''
<html><head><meta charset="utf-8"><title>第一章</title></head>
<body>
<div class="read_chapterName tc"><h1>第一章 开始</h1></div>
<div class="read_chapterDetail"><p>天下大势，分久必合，合久必分。</p></div>
</body></html>
'''


@app.route('/gbk/')
def gbk_toc():
    return GBK_TOC


@app.route('/gbk/1.html')
def gbk_chapter():
    return GBK_CHAPTER.encode('gbk'), 200, {'Content-Type': 'text/html; charset=utf-8'}


# --- 字形混淆站点 ---

CLEAR = 'ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz'
OBFUSCATED = (''.join(chr(0x1E00 + 2 * i) for i in range(26))
              + ''.join(chr(0x1E01 + 2 * i) for i in range(26)))
_OBFUSCATE = str.maketrans(CLEAR, OBFUSCATED)


def obfuscate(text: str) -> str:
    return text.translate(_OBFUSCATE)


NEPU_TOC = '''
<html><head><meta charset="utf-8"><title>Nepu Story</title>
<meta property="og:title" content="Nepu Story"><meta name="author" content="Nepu"></head>
<body>
<h1 class="entry-title">Nepu Story</h1>
<div class="entry-content">
  <p><a href="/nepu/1/">Chapter 1</a></p>
  <p><a href="/nepu/2/">Chapter 2</a></p>
</div>
</body></html>
'''

NEPU_CHAPTER = '''
<html><head><meta charset="utf-8"><title>Chapter {{ n }}</title></head>
<body>
<h1 class="entry-title">Chapter {{ n }}</h1>
<div class="entry-content">
  <p>{{ body }}</p>
  <p><em>{{ tail }}</em> 123!</p>
  <p><a href="/nepu/">Index</a></p>
</div>
</body></html>
'''


@app.route('/nepu/')
def nepu_toc():
    return NEPU_TOC


@app.route('/nepu/<int:n>/')
def nepu_chapter(n):
    return render_template_string(NEPU_CHAPTER,
                                  n=n,
                                  body=obfuscate('Hello World'),
                                  tail=obfuscate('The End'))


# --- 漫画站 ---

HELHEIM_SERIES = '''
<html><head><meta charset="utf-8"><title>Helheim Comic</title>
<meta name="description" content="A comic about testing."></head>
<body>
<h1>Helheim Comic</h1>
<div style="--photo: url('/covers/helheim.jpg')"></div>
<div id="chapters_panel">
  <a href="/helheim/3"><span>Chapter 3</span><img src="/coin.png"></a>
  <a href="/helheim/2"><span>Chapter 2</span></a>
  <a href="/helheim/1"><span>Chapter 1</span></a>
</div>
</body></html>
'''

HELHEIM_CHAPTER = '''
<html><head><meta charset="utf-8"><title>Helheim Comic Chapter {{ n }}</title></head>
<body>
<div id="pages">
  <img class="lazy" uid="{{ n }}-1.webp">
  <img class="lazy" uid="{{ n }}-2.webp">
</div>
</body></html>
'''


@app.route('/helheim/')
def helheim_series():
    return HELHEIM_SERIES


@app.route('/helheim/<int:n>')
def helheim_chapter(n):
    return render_template_string(HELHEIM_CHAPTER, n=n)


@app.route('/blocked/')
def blocked():
    return '<html><title>Just a moment...</title><body>cf-browser-verification</body></html>', 503


@app.route('/robots.txt')
def robots():
    """robots.txt - 允许所有爬虫"""
    return '''User-agent: *
Allow: /'''


if __name__ == '__main__':
    print("🚀 启动测试服务器...")
    print("📍 访问地址：http://localhost:8080/book/")
    print("📚 总章节数：", len(NOVEL_DATA['chapters']))
    print("-" * 50)
    app.run(host='127.0.0.1', port=8080, debug=True)
