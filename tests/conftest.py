from __future__ import annotations

from pathlib import Path

import pytest

POST_FILENAME = "2020-05-14_How-I-Learned-to-Stop-Worrying-ab12cd34ef56.html"

POST_HTML = """<!DOCTYPE html>
<html><head><title>How I Learned to Stop Worrying</title><style>body { color: red; }</style></head>
<body><article class="h-entry">
<header><h1 class="p-name">How I Learned to Stop Worrying</h1></header>
<section data-field="subtitle" class="p-summary">And love the bomb</section>
<section data-field="body" class="e-content">
<section name="a1" class="section section--body section--first">
<div class="section-divider"><hr class="section-divider"></div>
<div class="section-content"><div class="section-inner sectionLayout--insetColumn">
<h3 class="graf graf--h3 graf--title">How I Learned to Stop Worrying</h3>
<h4 class="graf graf--h4 graf--subtitle">And love the bomb</h4>
<figure class="graf graf--figure"><img class="graf-image" data-image-id="1*abc.png" data-width="800" data-height="600" src="https://cdn-images-1.medium.com/max/800/1*abc.png"><figcaption class="imageCaption">A caption</figcaption></figure>
<p class="graf graf--p">First paragraph with <strong class="markup--strong">bold</strong> and <em class="markup--em">italic</em>.</p>
<h3 class="graf graf--h3">A heading</h3>
<p class="graf graf--p"><span class="graf-dropCap">O</span>nce upon a time.</p>
</div></div></section>
<section name="b2" class="section section--body">
<div class="section-divider"><hr class="section-divider"></div>
<div class="section-content"><div class="section-inner sectionLayout--insetColumn">
<figure class="graf graf--figure"><img class="graf-image" alt="second" src="https://cdn-images-1.medium.com/max/800/1*def.jpeg"></figure>
<p class="graf graf--p">Second section.</p>
</div></div></section>
</section>
<footer><p>By <a href="https://medium.com/@jane" class="p-author h-card">Jane Doe</a> on <a href="https://medium.com/p/ab12cd34ef56"><time class="dt-published" datetime="2020-05-14T10:20:30.123Z">May 14, 2020</time></a>.</p>
<p><a href="https://medium.com/@jane/how-i-learned-to-stop-worrying-ab12cd34ef56" class="p-canonical">Canonical link</a></p></footer>
</article></body></html>
"""

DRAFT_FILENAME = "draft_Untitled-Draft-000011112222.html"

DRAFT_HTML = """<html><head><title>Untitled Draft</title></head><body><article>
<h1 class="p-name">Untitled Draft</h1>
<section data-field="body" class="e-content">
<section class="section section--body"><div class="section-content"><div class="section-inner">
<p class="graf graf--p">Just a start.</p>
</div></div></section></section>
</article></body></html>
"""

RESPONSE_FILENAME = "2021-02-03_Great-point--thanks-9f8e7d6c5b4a.html"

RESPONSE_HTML = """<html><head><title>Great point</title></head><body><article>
<h1 class="p-name">Great point, thanks</h1>
<section data-field="body" class="e-content">
<section class="section section--body"><div class="section-content"><div class="section-inner">
<p class="graf graf--p">Great point, thanks for writing this.</p>
</div></div></section></section>
<footer><time class="dt-published" datetime="2021-02-03T08:00:00.000Z">Feb 3, 2021</time></footer>
</article></body></html>
"""

EARNINGS_HTML = """<html><body><ul>
<li class="h-entry"><a href="https://medium.com/p/how-i-learned-to-stop-worrying-ab12cd34ef56">How I Learned to Stop Worrying</a> - $12.50</li>
<li class="h-entry"><a href="https://medium.com/p/other-post-123abc">Other post</a></li>
</ul></body></html>
"""


@pytest.fixture
def post_html() -> str:
    return POST_HTML


@pytest.fixture
def export_root(tmp_path: Path) -> Path:
    root = tmp_path / "export"
    posts = root / "posts"
    posts.mkdir(parents=True)
    (root / "README.html").write_text(
        "<html><body><h1>Archive for Jane Doe</h1></body></html>", encoding="utf-8"
    )
    (posts / POST_FILENAME).write_text(POST_HTML, encoding="utf-8")
    (posts / DRAFT_FILENAME).write_text(DRAFT_HTML, encoding="utf-8")
    (posts / RESPONSE_FILENAME).write_text(RESPONSE_HTML, encoding="utf-8")
    partner = root / "partner-program"
    partner.mkdir()
    (partner / "posts-0001.html").write_text(EARNINGS_HTML, encoding="utf-8")
    return root
