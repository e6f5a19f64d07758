"""Sample code sets for demos and tests."""

from __future__ import annotations

from formlogic.core.ontology import CodeSetItem, CodeSetSchema

PROVINCES_CODE_SET_ID = 1
YES_NO_CODE_SET_ID = 2
PROJECT_STATUS_CODE_SET_ID = 3
ORGANIZATION_TYPES_CODE_SET_ID = 99


def _items(rows: list[tuple[str, str, str]]) -> list[CodeSetItem]:
    return [
        CodeSetItem(value=value, text_en=text_en, text_fr=text_fr, order=index)
        for index, (value, text_en, text_fr) in enumerate(rows)
    ]


def canadian_provinces() -> CodeSetSchema:
    return CodeSetSchema(
        id=PROVINCES_CODE_SET_ID,
        code="PROVINCES_CA",
        name_en="Canadian Provinces and Territories",
        name_fr="Provinces et territoires canadiens",
        category="Geography",
        is_system_managed=True,
        tags=["canada", "geography", "provinces"],
        items=_items([
            ("AB", "Alberta", "Alberta"),
            ("BC", "British Columbia", "Colombie-Britannique"),
            ("MB", "Manitoba", "Manitoba"),
            ("NB", "New Brunswick", "Nouveau-Brunswick"),
            ("NL", "Newfoundland and Labrador", "Terre-Neuve-et-Labrador"),
            ("NS", "Nova Scotia", "Nouvelle-Écosse"),
            ("ON", "Ontario", "Ontario"),
            ("PE", "Prince Edward Island", "Île-du-Prince-Édouard"),
            ("QC", "Quebec", "Québec"),
            ("SK", "Saskatchewan", "Saskatchewan"),
            ("NT", "Northwest Territories", "Territoires du Nord-Ouest"),
            ("NU", "Nunavut", "Nunavut"),
            ("YT", "Yukon", "Yukon"),
        ]),
    )


def yes_no() -> CodeSetSchema:
    return CodeSetSchema(
        id=YES_NO_CODE_SET_ID,
        code="YES_NO",
        name_en="Yes / No",
        name_fr="Oui / Non",
        category="General",
        is_system_managed=True,
        items=_items([
            ("yes", "Yes", "Oui"),
            ("no", "No", "Non"),
        ]),
    )


def project_statuses() -> CodeSetSchema:
    return CodeSetSchema(
        id=PROJECT_STATUS_CODE_SET_ID,
        code="PROJECT_STATUS",
        name_en="Project Statuses",
        name_fr="Statuts de projet",
        category="Projects",
        items=[
            CodeSetItem(value="draft", text_en="Draft", text_fr="Brouillon", order=1),
            CodeSetItem(value="submitted", text_en="Submitted", text_fr="Soumis", order=2),
            CodeSetItem(value="approved", text_en="Approved", text_fr="Approuvé", order=3),
            CodeSetItem(value="archived", text_en="Archived", text_fr="Archivé", order=4, is_active=False),
        ],
    )


def organization_types() -> CodeSetSchema:
    return CodeSetSchema(
        id=ORGANIZATION_TYPES_CODE_SET_ID,
        code="ORG_TYPES",
        name_en="Organization Types",
        name_fr="Types d'organisation",
        category="Organizations",
        is_system_managed=True,
        tags=["organization", "entity-type"],
        items=_items([
            ("individual", "Individual", "Individuel"),
            ("non_profit", "Non-Profit Organization", "Organisation à but non lucratif"),
            ("business", "Private Business", "Entreprise privée"),
            ("government", "Government Agency", "Agence gouvernementale"),
        ]),
    )


def sample_code_sets() -> list[CodeSetSchema]:
    return [canadian_provinces(), yes_no(), project_statuses(), organization_types()]
