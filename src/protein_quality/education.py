from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

EducationTopic = Literal["overview", "diaas", "pdcaas", "sources", "tips"]

TOPIC_DISPLAY_NAMES: dict[EducationTopic, str] = {
    "overview": "Overview",
    "diaas": "DIAAS Score",
    "pdcaas": "PDCAAS Score",
    "sources": "Protein Sources",
    "tips": "Practical Tips",
}


@dataclass(frozen=True)
class EducationCard:
    title: str
    content: str


TOPICS: dict[EducationTopic, tuple[EducationCard, ...]] = {
    "overview": (
        EducationCard(
            "What is Protein Quality?",
            "Protein quality describes how well a protein provides the essential amino acids "
            "your body needs. It depends on two factors:\n\n"
            "- **Amino acid profile**: does it contain all essential amino acids?\n"
            "- **Digestibility**: how well can your body absorb and use it?\n\n"
            "DIAAS and PDCAAS are the scientific methods used to measure these factors.",
        ),
        EducationCard(
            "Why Does This Matter?",
            "Understanding protein quality helps you:\n\n"
            "- Make informed dietary choices\n"
            "- Ensure adequate amino acid intake\n"
            "- Optimize muscle protein synthesis\n"
            "- Plan balanced meals effectively\n\n"
            "Not all proteins are created equal!",
        ),
        EducationCard(
            "How to Use This App",
            "1. **Enter** the protein amount from your food label\n"
            "2. **Add** the Daily Value % if available\n"
            "3. **Select** your protein source\n"
            "4. **Calculate** to see the quality-adjusted protein amount\n"
            "5. **Review** your history to track patterns",
        ),
    ),
    "diaas": (
        EducationCard(
            "What is DIAAS?",
            "The **Digestible Indispensable Amino Acid Score** has been the FAO-recommended "
            "measure of protein quality since 2013. It measures:\n\n"
            "- Individual amino acid digestibility\n"
            "- Limiting amino acid content\n"
            "- Absorption at the end of the small intestine",
        ),
        EducationCard(
            "DIAAS Score Interpretation",
            "**Excellent (>= 1.0)**: complete, high-quality protein. Whey (1.25), Milk (1.18), Eggs (1.13)\n\n"
            "**High (0.8-0.99)**: minor limitations. Soy protein (0.90), Tofu (0.87)\n\n"
            "**Good (0.6-0.79)**: moderate quality. Pea protein (0.67), Hemp seeds (0.61)\n\n"
            "**Fair or Poor (< 0.6)**: significant limitations. Rice protein (0.42), Almonds (0.40)",
        ),
        EducationCard(
            "Advantages of DIAAS",
            "- More accurate than PDCAAS\n"
            "- Measures actual absorption\n"
            "- Accounts for processing effects\n"
            "- Can exceed 1.0, showing superior quality\n"
            "- Considers individual amino acid digestibility",
        ),
    ),
    "pdcaas": (
        EducationCard(
            "What is PDCAAS?",
            "The **Protein Digestibility Corrected Amino Acid Score** was the standard for "
            "protein quality from 1989 to 2013. It considers amino acid composition, overall "
            "protein digestibility and the limiting amino acid.",
        ),
        EducationCard(
            "PDCAAS Limitations",
            "- Capped at 1.0, so it cannot show superior quality\n"
            "- Uses fecal digestibility\n"
            "- Assumes all amino acids digest equally\n"
            "- Ignores processing effects\n"
            "- Overestimates some plant proteins",
        ),
        EducationCard(
            "When PDCAAS Is Used",
            "PDCAAS is the fallback when no DIAAS value is published for a source. Many "
            "sources still only have PDCAAS scores in the literature, and it remains common "
            "on nutrition labels.",
        ),
    ),
    "sources": (
        EducationCard(
            "Animal vs. Plant Proteins",
            "**Animal proteins** usually score higher: they contain all essential amino acids, "
            "digest well and closely match human needs.\n\n"
            "**Plant proteins** often score lower because of limiting amino acids, lower "
            "digestibility and anti-nutritional factors.",
        ),
        EducationCard(
            "Combining Plant Proteins",
            "Complementary sources improve overall quality:\n\n"
            "- Rice + Beans\n"
            "- Peanut Butter + Whole Wheat\n"
            "- Hummus + Pita\n\n"
            "Combining across the day is enough; it does not have to happen at every meal.",
        ),
    ),
    "tips": (
        EducationCard(
            "Reading Nutrition Labels",
            "**Look for** protein grams per serving, the Daily Value percentage and the "
            "ingredient list.\n\n"
            "**Red flags**: unspecified \"protein blends\", very cheap powders, missing amino "
            "acid information.",
        ),
        EducationCard(
            "Daily Protein Needs",
            "- General population: 0.8 g per kg body weight\n"
            "- Active individuals: 1.2-1.6 g per kg\n"
            "- Athletes: 1.6-2.2 g per kg\n\n"
            "A 70 kg person needs roughly 56-154 g of protein a day.",
        ),
        EducationCard(
            "Meal Planning Tips",
            "- Include a high-quality protein at each meal\n"
            "- Vary plant proteins through the day\n"
            "- Don't rely solely on supplements\n"
            "- Aim for 20-30 g of high-quality protein per meal",
        ),
    ),
}


def cards_for(topic: EducationTopic) -> tuple[EducationCard, ...]:
    if topic not in TOPICS:
        raise ValueError(f"topic must be one of: {', '.join(TOPICS)}")
    return TOPICS[topic]
