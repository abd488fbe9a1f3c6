from __future__ import annotations

from jobscope.services.text_normalizer import (
    extract_page_content,
    extract_requirements_text,
    normalize_text,
)


def test_normalize_text_lowercases_and_collapses() -> None:
    assert normalize_text("  Hello\n\n\tWORLD  again ") == "hello world again"


def test_normalize_text_is_total() -> None:
    assert normalize_text("") == ""
    assert normalize_text(None) == ""


def test_requirements_keeps_trigger_lines_only() -> None:
    description = "\n".join([
        "About the team and our mission to build safe systems",
        "Minimum qualifications: 5+ years of Python experience building services",
        "You have shipped distributed systems at scale in production",
        "Free lunch",
    ])
    text = extract_requirements_text(description)
    assert "python experience" in text
    assert "you have shipped distributed systems" in text
    assert "mission" not in text
    assert text == text.lower()


def test_requirements_falls_back_to_list_items() -> None:
    description = "We build things.\nJoin us."
    items = ["Deep knowledge of CUDA kernels", "Experience tuning PyTorch training loops at scale"]
    text = extract_requirements_text(description, items)
    assert text == "deep knowledge of cuda kernels experience tuning pytorch training loops at scale"


def test_requirements_falls_back_to_first_thousand_characters() -> None:
    description = "x" * 5000
    text = extract_requirements_text(description, ["short"])
    assert len(text) == 1000


def test_requirements_of_empty_description_is_empty() -> None:
    assert extract_requirements_text("") == ""
    assert extract_requirements_text(None, None) == ""


def test_extract_page_content_prefers_job_body() -> None:
    body = "Responsibilities include owning the inference stack end to end. " * 5
    html = f"""
    <html><head><style>.x {{ color: red }}</style></head>
    <body>
      <nav>Home Careers Blog</nav>
      <main>
        <p>{body}</p>
        <ul><li>Experience with Kubernetes</li><li>Strong Python skills</li></ul>
        <script>var tracking = true;</script>
      </main>
    </body></html>
    """
    description, items = extract_page_content(html)
    assert "inference stack" in description
    assert "Home Careers Blog" not in description
    assert "tracking" not in description
    assert items == ["Experience with Kubernetes", "Strong Python skills"]


def test_extract_page_content_without_html() -> None:
    assert extract_page_content("") == ("", [])
    assert extract_page_content(None) == ("", [])
