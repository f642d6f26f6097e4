"""Prompt templates for the AI research features.

Placeholders use ``{name}`` and are filled by :func:`render_prompt`. Edit the
wording here without touching the request code.
"""

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class PromptTemplate:
    template: str
    system_prompt: Optional[str] = None


def render_prompt(template: str, **values: str) -> str:
    """Substitute ``{name}`` placeholders. Unknown braces are left alone."""
    rendered = template
    for name, value in values.items():
        rendered = rendered.replace("{" + name + "}", value)
    return rendered


_SOURCING_RULE = (
    "Be transparent with your sourcing: cite or link a URL for every specific "
    'data element and write "Not found" when something is unavailable.'
)

_SEARCH_EXPANSION = """If official company channels name only a few key individuals, widen the search to:
- Business directories (Crunchbase, ZoomInfo, D&B)
- SEC filings and company press releases
- News coverage, industry event speakers, and government award listings

Report every leadership, business development, and delivery team member you can identify. Mark missing information as "Not found" or "No public data"."""


PERPLEXITY_CONTRACTOR_OVERVIEW = PromptTemplate(
    system_prompt=(
        "You are an expert federal contract and capture analyst. Use deep "
        "research to find public, authoritative sources."
    ),
    template=f"""Build a contract-capture summary in markdown for the company below.

{_SEARCH_EXPANSION}

Company Name: {{companyName}}

Use this structure:

**Company Name:** [name]
**Website:** [official site link]
**LinkedIn:** [LinkedIn page link]

**Overview:**
- Company description
- Core services and sectors
- Headquarters and year founded
- Major government contracts

**Key Individuals:**
| Name | Title | Email | LinkedIn |
|------|-------|-------|----------|
| ... | ... | ... | ... |

Only include individuals from reputable, citable sources and give a source URL for each.

**Summary Insight:**
Explain briefly why the company matters in the federal market.

{_SOURCING_RULE}""",
)


GEMINI_CONTRACTOR_OVERVIEW = PromptTemplate(
    template=f"""You are an expert federal contract and capture analyst. Go beyond listing facts: give competitive insight and strategic context.

Build a detailed contract-capture summary in markdown for the company below, using the sections listed.

**Analysis requirements:**
1. **Organizational maturity:** report certifications (CMMI level, ISO 9001/20000/27001) and why they matter for winning federal work.
2. **Contract vehicles:** tabulate major IDIQs/GWACs (T4NG, CIO-SP3/4, POLARIS, Alliant 2) and explain what the portfolio says about market access.
3. **Major contracts:** cite recent prime awards above $10M with agency, value, and what each implies about technical capability.
4. **Key individuals:** give biographical context relevant to federal contracting (military service, prior government roles, capture or pricing expertise).

{_SEARCH_EXPANSION}

Company Name: {{companyName}}

**Company Name:** [name]
**Website:** [official site link]
**LinkedIn:** [LinkedIn page link]

**Overview: Market Positioning and Organizational Maturity**

**Core Services and Technical Sectors**

**Federal Market Access Vehicles**

| Vehicle Name | Contract Type | Status/Group | Task Areas Supported | Citation |
|---|---|---|---|---|

**Major Government Contracts**

| Contract Name/Program | Agency | Value | Duration | Core Service Focus | Citation |
|---|---|---|---|---|---|

**Key Individuals**

| Name | Title | Email | LinkedIn | Source URL/Citation |
|---|---|---|---|---|

**Organizational Mapping: Strategic Roles and Influence**

**Summary Insight: Competitive Posture and Strategic Relevance**

{_SOURCING_RULE}""",
)


ANALYSIS_SUMMARIZER = PromptTemplate(
    system_prompt=(
        "You are an expert federal contract analyst. Create concise, actionable "
        "summaries while preserving critical intelligence."
    ),
    template="""Condense the detailed contractor analysis below into a summary for quick review.

DETAILED ANALYSIS TO SUMMARIZE:
{detailedAnalysis}

Follow this structure exactly:

**Company Name:** [exact name from input]
**Website:** [exact URL from input]
**LinkedIn:** [exact URL from input]

**Company Description:**
[At most 4 lines: what they do, core sectors, HQ location, year founded]

**Core Services:**
[5-6 bullet points at most]

**Major Government Contract Vehicles:**
[Vehicle names as a comma-separated list]

**Key Individuals:**
[Copy the Key Individuals table from the input unchanged]

**Summary Insight:**
[2-3 sentences on competitive positioning and notable strengths, with bracketed citations where available]""",
)


CONTRACT_NAME_RESEARCH = PromptTemplate(
    template="""You are a federal contract research specialist. Use Google Search to find the official name and details of this contract.

**Contract Information:**
- **Award ID:** {awardId}
- **Recipient/Contractor:** {recipientName}
- **Description:** {description}

Find:
1. The official contract or program name
2. The program acronym, if any
3. What the contract is for
4. Official program pages or documentation

Search the Award ID with the agency name, press releases, agency procurement pages, USAspending.gov and FPDS.gov.

**Official Contract Name:** [name, or "Not found - see description analysis below"]

**Program Acronym:** [acronym]

**Contract Purpose:** [1-2 sentences]

**Agency Program:** [program or initiative supported]

**Reference Links:** [official links found]

If the name cannot be found, interpret the description and give the most likely name under common federal naming patterns. Cite findings with markdown links.""",
)


TOOLS_RESEARCH = PromptTemplate(
    template="""You are a federal IT contract technology analyst. Use Google Search to identify the tools, COTS products, and SaaS solutions used on this contract.

**Contract Context:**
{contractInfo}

**Award ID:** {awardId}
**Contractor:** {recipientName}

Identify the primary technology stack, COTS products (ServiceNow, Salesforce, Oracle, Microsoft, ...), SaaS services, development and DevOps tooling, and cloud infrastructure. Check solicitations, press releases, technical papers, partner announcements, and industry news.

**Technology Stack & Tools:**

**COTS Products:**
- [Product]: [how it is used]

**SaaS Solutions:**
- [Service]: [purpose]

**Development & DevOps:**
- [tools]

**Cloud Infrastructure:**
- [provider and services]

**Additional Technologies:**
- [other]

If nothing is disclosed, say "No specific tools/products publicly disclosed for this contract." and describe what would typically be used for this kind of work. Cite findings with markdown links.""",
)


GAO_RESEARCH = PromptTemplate(
    template="""You are a federal oversight and audit research specialist. Use Google Search to find GAO reports relevant to this contract or program.

**Contract Context:**
{contractInfo}

**Award ID:** {awardId}
**Contractor:** {recipientName}

Look for GAO work on this contract, the agency program it supports, related modernization efforts, and oversight of similar contracts.

**Relevant GAO Reports Found:** [Yes/No]

For each report:

**Report Title:** [title with link]
**Report Number:** [GAO-XX-XXX]
**Date:** [publication date]
**Key Findings:**
- [finding]

**Mitigations/Actions Taken:**
- [action]

**Recommendations:**
- [recommendation]

**Report Link:** [direct link]

---

If none are found, say "No GAO reports directly related to this specific contract were found through public search." and mention any broader GAO work on the agency program or technology area. Link every report mentioned.""",
)
