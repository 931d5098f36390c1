"""
Tests for cvmatch.ml.nlp.section_extractor: header detection and sectioning.
"""

import pytest

from cvmatch.ml.nlp.section_extractor import (
    SECTION_KEYWORDS,
    CVSections,
    detect_section,
    extract_sections,
    normalize_header,
)


ENGLISH_CV = """
John Doe
john.doe@example.com

SKILLS:
• Python
• Docker, Kubernetes
- Go
Education
BSc Computer Science, Hanoi University of Science and Technology
Work Experience
Backend Engineer at Acme (2019-2023)
ok
Certifications
AWS Certified Developer
"""

VIETNAMESE_CV = """
Nguyễn Văn A
KỸ NĂNG
ReactJS, NodeJS
HỌC VẤN
Đại học Bách Khoa Hà Nội
KINH NGHIỆM LÀM VIỆC
Lập trình viên tại Công ty ABC
CHỨNG CHỈ
TOEIC 850
"""


# ── header detection ─────────────────────────────────────────────────────────


class TestDetectSection:
    @pytest.mark.parametrize(
        "line,section",
        [
            ("Skills", "skills"),
            ("SKILLS:", "skills"),
            ("• Technical Skills", "skills"),
            ("Education", "education"),
            ("Work Experience", "experience"),
            ("EXPERIENCE", "experience"),
            ("Certificates", "certificates"),
            ("Kỹ năng", "skills"),
            ("HỌC VẤN", "education"),
            ("Kinh nghiệm làm việc", "experience"),
            ("Chứng chỉ", "certificates"),
        ],
    )
    def test_headers(self, line, section):
        assert detect_section(line) == section

    def test_short_line_containing_keyword(self):
        # "my skills" is "skills" plus 3 characters
        assert detect_section("My Skills") == "skills"

    def test_sentence_mentioning_keyword_is_not_header(self):
        assert detect_section("I have strong communication skills and teamwork") is None

    def test_content_line(self):
        assert detect_section("Python, Docker, Kubernetes") is None

    def test_punctuation_only(self):
        assert detect_section("-----") is None

    def test_keyword_table_is_ordered(self):
        assert [section for section, _ in SECTION_KEYWORDS] == [
            "skills",
            "education",
            "experience",
            "certificates",
        ]


class TestNormalizeHeader:
    def test_strips_bullets_and_punctuation(self):
        assert normalize_header("  • SKILLS:  ") == "skills"

    def test_keeps_vietnamese_letters(self):
        assert normalize_header("KỸ NĂNG:") == "kỹ năng"

    def test_decomposed_unicode_is_composed(self):
        import unicodedata

        decomposed = unicodedata.normalize("NFD", "Kỹ năng")
        assert normalize_header(decomposed) == "kỹ năng"


# ── extract_sections ─────────────────────────────────────────────────────────


class TestExtractSections:
    def test_english_cv(self):
        sections = extract_sections(ENGLISH_CV)
        assert sections.skills == ["Python", "Docker, Kubernetes", "Go"]
        assert sections.education == [
            "BSc Computer Science, Hanoi University of Science and Technology"
        ]
        assert sections.experience == ["Backend Engineer at Acme (2019-2023)"]
        assert sections.certificates == ["AWS Certified Developer"]

    def test_vietnamese_cv(self):
        sections = extract_sections(VIETNAMESE_CV)
        assert sections.skills == ["ReactJS, NodeJS"]
        assert sections.education == ["Đại học Bách Khoa Hà Nội"]
        assert sections.experience == ["Lập trình viên tại Công ty ABC"]
        assert sections.certificates == ["TOEIC 850"]

    def test_lines_before_first_header_discarded(self):
        sections = extract_sections(ENGLISH_CV)
        everything = sections.skills + sections.education + sections.experience + sections.certificates
        assert "John Doe" not in everything
        assert "john.doe@example.com" not in everything

    def test_short_lines_dropped(self):
        sections = extract_sections(ENGLISH_CV)
        assert "ok" not in sections.experience

    def test_no_headers(self):
        sections = extract_sections("Just a paragraph of text\nwith no recognisable headers at all")
        assert sections.is_empty

    def test_repeated_section_accumulates(self):
        text = "Skills\nPython\nEducation\nMIT\nSkills\nRust"
        assert extract_sections(text).skills == ["Python", "Rust"]

    def test_short_text_returns_empty(self):
        assert extract_sections("Skills").is_empty

    def test_empty_text(self):
        assert extract_sections("").is_empty

    def test_to_dict(self):
        sections = extract_sections(VIETNAMESE_CV).to_dict()
        assert set(sections) == {"skills", "education", "experience", "certificates"}
        assert sections["certificates"] == ["TOEIC 850"]


class TestCVSections:
    def test_empty_by_default(self):
        assert CVSections().is_empty

    def test_not_empty_with_content(self):
        assert not CVSections(skills=["Python"]).is_empty
