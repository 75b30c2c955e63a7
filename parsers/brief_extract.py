import re

TECH_KEYWORDS = [
    "react", "javascript", "python", "node", "angular", "vue", "typescript",
    "java", "php", "css", "html", "sql", "mongodb", "postgresql", "aws",
    "docker", "kubernetes", "git", "agile", "scrum",
]
KEYWORD_PATTERN = re.compile(r"\b(" + "|".join(TECH_KEYWORDS) + r")\b", re.IGNORECASE)


def _dedupe(items):
    seen = set()
    out = []
    for item in items:
        key = item.lower()
        if key in seen:
            continue
        seen.add(key)
        out.append(item)
    return out


def keyword_skills(text: str) -> list:
    """Technology keywords found in free text, lower-cased, in order of appearance."""
    if not text:
        return []
    return _dedupe(m.group(1).lower() for m in KEYWORD_PATTERN.finditer(text))


def project_required_skills(tags, description: str) -> list:
    """Required skills for a project: its tags, then description keywords."""
    tags = [t.strip() for t in (tags or []) if t and t.strip()]
    return _dedupe(tags + keyword_skills(description))


def extract_brief_details(text: str) -> dict:
    """
    Pull a title guess and suggested skills out of a project brief.
    Works on the plain text of an uploaded PDF.
    """
    text = (text or "").replace("•", " ").replace("–", "-")
    lines = [line.strip() for line in text.splitlines() if line.strip()]
    flat = re.sub(r"\s+", " ", text).strip()

    title = ""
    title_line = re.compile(r"^(?:project\s+(?:title|name)|title|project)\s*[:\-]\s*(.+)$", re.IGNORECASE)
    for line in lines:
        m = title_line.match(line)
        if m:
            title = m.group(1).strip()
            break
    if not title:
        # fallback: first non-empty line
        title = lines[0][:80] if lines else "Untitled Project"

    return {
        "title": title,
        "required_skills": keyword_skills(flat),
        "raw_text": flat,
    }
