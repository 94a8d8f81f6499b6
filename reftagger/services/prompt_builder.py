"""
Prompt construction for AI tag suggestions

The baseline prompt lists the vocabulary and the expected JSON shape. The
enhanced prompt adds a section built from the correction analysis so the
model can learn which tags designers keep adding or removing.
"""
from typing import Any, Dict, List, Optional


def category_label(key: str) -> str:
    """project_types -> Project Types"""
    return " ".join(word[:1].upper() + word[1:] for word in key.split("_"))


def _vocabulary_section(vocabulary: Dict[str, List[str]]) -> str:
    lines = []
    for key, tags in vocabulary.items():
        lines.append(f"**{category_label(key)}** ({len(tags)} tags):")
        lines.extend(f"- {tag}" for tag in tags)
        lines.append("")
    return "\n".join(lines)


def _pattern_lines(patterns: List[Dict[str, Any]], verb: str) -> str:
    return "\n".join(
        f'- "{p["tag"]}" ({p["category"]}) - designers {verb} this {p["count"]} times ({p["percentage"]}% of images)'
        for p in patterns[:8]
    )


def missed_tag_guidance(missed: List[Dict[str, Any]]) -> str:
    guidance = []
    seen_categories = set()
    for pattern in missed:
        category = pattern["category"]
        if category == "unknown" or category in seen_categories:
            continue
        seen_categories.add(category)
        guidance.append(
            f'→ "{pattern["tag"]}" ({category_label(category)}) is often present but you miss it '
            f'- you have missed it {pattern["count"]} times, check for it specifically'
        )
        if len(guidance) == 4:
            break
    return "\n" + "\n".join(guidance) if guidance else ""


def wrong_tag_guidance(wrong: List[Dict[str, Any]]) -> str:
    guidance = []
    if wrong and wrong[0]["percentage"] > 40:
        guidance.append(f'→ CRITICAL: You over-suggest "{wrong[0]["tag"]}" - only use it when EXTREMELY confident')

    per_category: Dict[str, int] = {}
    for pattern in wrong:
        per_category[pattern["category"]] = per_category.get(pattern["category"], 0) + 1
    for category, count in per_category.items():
        if category != "unknown" and count >= 2:
            guidance.append(
                f"→ You often misjudge {category_label(category)} tags - be more conservative unless certain"
            )
    return "\n" + "\n".join(guidance) if guidance else ""


def actionable_guidance(analysis: Dict[str, Any]) -> str:
    guidance = []
    accuracy = analysis["accuracy_rate"]
    if accuracy < 70:
        guidance.append("- Overall accuracy is low - be more careful and selective with ALL tags")
    elif accuracy < 80:
        guidance.append("- Accuracy is moderate - focus on the specific problem tags listed above")
    else:
        guidance.append("- Overall accuracy is good - maintain this standard while addressing specific gaps")

    category_accuracy = analysis.get("category_accuracy") or {}
    if category_accuracy:
        worst, worst_accuracy = min(category_accuracy.items(), key=lambda item: item[1])
        if worst_accuracy < 70:
            guidance.append(f"- {category_label(worst)} tags need the most improvement - double-check these especially")

    total = analysis["total_images"] or 1
    missed_per_image = sum(p["count"] for p in analysis["frequently_missed"]) / total
    wrong_per_image = sum(p["count"] for p in analysis["frequently_wrong"]) / total
    if missed_per_image > wrong_per_image:
        guidance.append("- You tend to under-tag (missing relevant tags) - be more inclusive when confident")
    elif wrong_per_image > missed_per_image:
        guidance.append("- You tend to over-tag (suggesting irrelevant tags) - be more conservative and selective")
    return "\n".join(guidance)


def _category_performance(category_accuracy: Dict[str, int]) -> str:
    lines = []
    for key, accuracy in category_accuracy.items():
        marker = "✅" if accuracy >= 80 else "⚠️" if accuracy >= 60 else "❌"
        suffix = " - NEEDS IMPROVEMENT" if accuracy < 70 else ""
        lines.append(f"{marker} {category_label(key).upper()}: {accuracy}% accuracy{suffix}")
    return "\n".join(lines)


def learning_section(analysis: Dict[str, Any]) -> str:
    return f"""
**🧠 LEARNING FROM PAST CORRECTIONS:**

Based on {analysis["total_images"]} images previously tagged by professional designers, here are the patterns to improve your accuracy (current: {analysis["accuracy_rate"]}%):

**⚠️ TAGS YOU FREQUENTLY MISS** - Pay EXTRA attention to these:
{_pattern_lines(analysis["frequently_missed"], "added")}
{missed_tag_guidance(analysis["frequently_missed"])}

**❌ TAGS YOU WRONGLY SUGGEST** - Be MORE CONSERVATIVE with these:
{_pattern_lines(analysis["frequently_wrong"], "removed")}
{wrong_tag_guidance(analysis["frequently_wrong"])}

**🎯 CATEGORY PERFORMANCE:**
{_category_performance(analysis.get("category_accuracy") or {})}

**💡 KEY IMPROVEMENTS NEEDED:**
{actionable_guidance(analysis)}

**Your goal:** Improve accuracy by learning from these designer corrections. Consider context carefully before suggesting or avoiding these specific tags.

---
"""


def build_tag_suggestion_prompt(
    vocabulary: Dict[str, List[str]],
    version: str = "baseline",
    analysis: Optional[Dict[str, Any]] = None,
) -> str:
    prompt = (
        "You are analyzing a design reference image for a graphic design studio's reference bank. "
        "Your task is to suggest relevant tags from the provided vocabulary that best describe this image.\n\n"
        "**AVAILABLE TAG VOCABULARY:**\n\n"
    )
    prompt += _vocabulary_section(vocabulary)
    prompt += "---\n"

    if version == "enhanced" and analysis and analysis.get("total_images", 0) >= 5:
        prompt += learning_section(analysis)

    format_lines = "\n".join(f'  "{key}": ["tag1", "tag2"],' for key in vocabulary)
    prompt += f"""
**INSTRUCTIONS:**
1. Analyze the image carefully: the sector it relates to, the kind of project it could serve, its visual style, its mood and the design elements present.
2. Select ONLY tags that exist in the vocabulary above
3. Be selective - only suggest tags that are clearly relevant
4. You may suggest 0-3 tags per category (don't force tags if they don't fit)
5. Provide a confidence level based on how clear the image's characteristics are
6. Give a brief reasoning for your suggestions

**RESPONSE FORMAT:**
Return your response as a JSON object with this exact structure:

{{
{format_lines}
  "confidence": "high",
  "reasoning": "Brief explanation of your tag selections and what you observed in the image."
}}

**Confidence levels:**
- "high": Image characteristics are very clear and tags are obvious
- "medium": Image has some clear elements but some ambiguity
- "low": Image is unclear, abstract, or doesn't fit vocabulary well

Respond ONLY with valid JSON. Do not include any markdown formatting, code blocks, or explanatory text outside the JSON."""
    return prompt
