"""Unit tests for the regex answer extractors and their text helpers."""

from __future__ import annotations

import pytest

from src.services.answering import extractors, formatter
from src.services.answering.extractors import UNKNOWN, CertificateInfo
from src.services.answering.text_utils import clean_text, extract_section, split_sentences


# ---------------------------------------------------------------------------
# Text helpers
# ---------------------------------------------------------------------------


class TestTextUtils:
    def test_clean_text_removes_noise_and_splits_glued_words(self) -> None:
        assert clean_text("  Data~Science ## issuedBy   Coursera  ") == "Data Science issued By Coursera"

    def test_clean_text_keeps_punctuation_used_by_extractors(self) -> None:
        assert clean_text("email: a@b.com (c) 1/2/2020") == "email: a@b.com (c) 1/2/2020"

    def test_split_sentences_filters_short_and_letterless(self) -> None:
        text = "Tiny. This sentence is long enough! 12345678901234567890? Another long sentence here"
        assert split_sentences(text, min_length=15) == [
            "This sentence is long enough",
            "Another long sentence here",
        ]

    def test_extract_section_stops_at_next_heading(self) -> None:
        text = "SKILLS Python, Go PROJECTS Search engine"
        assert extract_section(text, ("SKILLS",)) == "Python, Go"

    def test_extract_section_title_case_with_colon(self) -> None:
        assert extract_section("Education: BSc Physics", ("EDUCATION",), to_end=True) == "BSc Physics"

    def test_extract_section_missing(self) -> None:
        assert extract_section("nothing here", ("SKILLS",)) is None


# ---------------------------------------------------------------------------
# Certificates
# ---------------------------------------------------------------------------


class TestCertificateExtraction:
    def test_full_certificate(self, certificate_text: str) -> None:
        info = extractors.extract_certificate_info(certificate_text)

        assert info.recipient == "John Smith"
        assert info.course == "Data Science"
        assert info.issuer == "Coursera"
        assert info.date == "June 1, 2023"
        assert info.type == "Professional Certificate"
        assert info.has_info is True

    def test_presented_to_with_known_course(self) -> None:
        info = extractors.extract_certificate_info(
            "This certificate is presented to Priya Sharma for successfully "
            "completing the Machine Learning program."
        )
        assert info.recipient == "Priya Sharma"
        assert info.course == "Machine Learning"
        assert info.issuer == UNKNOWN
        assert info.date == UNKNOWN

    def test_issued_by_phrase(self) -> None:
        info = extractors.extract_certificate_info("Diploma issued by Stanford University")
        assert info.issuer == "Stanford University"

    def test_type_keywords(self) -> None:
        info = extractors.extract_certificate_info("Internship completed at Infosys")
        assert info.type == "Internship Certificate"
        assert info.issuer == "Infosys"

    def test_nothing_found(self) -> None:
        info = extractors.extract_certificate_info("blurred scan with no readable words")
        assert info.has_info is False
        assert info.type == UNKNOWN


class TestCertificateFormatting:
    def test_unknown_fields_are_omitted(self) -> None:
        info = CertificateInfo(recipient="Priya Sharma", course="Machine Learning")
        answer = formatter.format_certificate(info)

        assert answer == "**Recipient:** Priya Sharma\n**Course/Program:** Machine Learning"
        assert UNKNOWN not in answer


# ---------------------------------------------------------------------------
# Names, courses, organizations, dates
# ---------------------------------------------------------------------------


class TestEntityLists:
    def test_names(self) -> None:
        assert extractors.extract_names("Certificate awarded to Alice Brown by Acme") == [
            "Alice Brown"
        ]

    def test_format_names(self) -> None:
        assert formatter.format_names(["Alice Brown"]) == "The name mentioned is: **Alice Brown**"
        assert formatter.format_names(["A B", "C D"]) == "Names mentioned: **A B, C D**"

    def test_courses(self) -> None:
        courses = extractors.extract_courses("Training: Advanced Kubernetes. Also Cloud Computing.")
        assert courses == ["Cloud Computing", "Advanced Kubernetes"]

    def test_organizations(self) -> None:
        orgs = extractors.extract_organizations("Issued by Google with Harvard University support")
        assert orgs == ["Google", "Harvard University"]

    def test_dates_skip_years_already_covered(self) -> None:
        text = "Issued on March 5, 2021 and renewed 12/01/2022, expires 2024-06-30. Founded 1999."
        assert extractors.extract_dates(text) == [
            "March 5, 2021",
            "12/01/2022",
            "2024-06-30",
            "1999",
        ]


# ---------------------------------------------------------------------------
# Financial figures and comparisons
# ---------------------------------------------------------------------------


class TestFinancialExtraction:
    def test_percentages(self, financial_text: str) -> None:
        assert extractors.extract_percentages(financial_text) == [
            "increased by 12%",
            "18%",
            "21%",
        ]

    def test_amounts(self, financial_text: str) -> None:
        assert extractors.extract_amounts(financial_text) == [
            "Revenue of $4.5 million",
            "$3.9 million",
        ]

    def test_amounts_capped(self) -> None:
        text = " ".join(f"${i}00" for i in range(1, 20))
        assert len(extractors.extract_amounts(text)) == 10

    def test_comparisons(self, financial_text: str) -> None:
        comparisons = extractors.extract_comparisons(financial_text)
        assert any("versus $3.9 million" in c for c in comparisons)
        assert "rose from 18% to 21%" in comparisons

    def test_than_comparison(self) -> None:
        assert extractors.extract_comparisons("Costs were higher than expected.") == [
            "higher than expected"
        ]


# ---------------------------------------------------------------------------
# Locations, contacts and resume sections
# ---------------------------------------------------------------------------


class TestResumeAndContact:
    def test_locations(self) -> None:
        assert extractors.extract_locations("Located in Austin, TX near the river") == ["Austin, TX"]
        assert "221 Baker Street" in extractors.extract_locations("Office at 221 Baker Street, London")

    def test_contact_block(self, resume_text: str) -> None:
        assert extractors.extract_contact_block(resume_text) == [
            "Email: jane.doe@example.com",
            "Phone: +1 555 123 4567",
            "LinkedIn: linkedin.com/in/janedoe",
        ]

    def test_contact_block_absent(self) -> None:
        assert extractors.extract_contact_block("no contact details") == []

    def test_skills(self, resume_text: str) -> None:
        assert extractors.extract_skills(resume_text) == ["Python", "FastAPI", "Docker", "PostgreSQL"]

    def test_projects(self, resume_text: str) -> None:
        assert extractors.extract_projects(resume_text) == (
            "Built a document search engine with vector retrieval."
        )

    def test_education_runs_to_end(self, resume_text: str) -> None:
        assert extractors.extract_education(resume_text) == (
            "B.Tech in Computer Science, Stanford University, 2019"
        )

    @pytest.mark.parametrize(
        "func",
        [extractors.extract_skills, extractors.extract_projects, extractors.extract_education],
    )
    def test_missing_sections(self, func) -> None:
        assert not func("plain text without headings")
