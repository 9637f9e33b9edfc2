"""
Scale catalogue and adaptive scale selection.

A scale is a psychometric instrument: an ordered list of Likert questions.
Which scales apply depends on the respondent's demographics and on the
assessment type (``quick`` short forms or ``full`` long forms).

The selectors are pure and total: every demographics value, including an
empty one, maps to an ordered list of scale ids.
"""

from dataclasses import dataclass, field

from .models import Demographics

PARTNERED_STATUSES = {"dating", "cohabiting", "married"}
OLDER_ADULT_BRACKETS = {"4"}  # 50+


@dataclass(frozen=True)
class Question:
    id: str
    text: str
    reverse: bool = False  # reverse-keyed item


@dataclass(frozen=True)
class ScaleDefinition:
    id: str
    name: str
    questions: tuple[Question, ...] = field(default_factory=tuple)
    min_value: int = 1
    max_value: int = 7

    @property
    def question_ids(self) -> list[str]:
        return [q.id for q in self.questions]


def _scale(scale_id: str, name: str, prefix: str, items: list[str],
           reverse: tuple[int, ...] = ()) -> ScaleDefinition:
    questions = tuple(
        Question(id=f"{prefix}_{i}", text=text, reverse=i in reverse)
        for i, text in enumerate(items, 1)
    )
    return ScaleDefinition(id=scale_id, name=name, questions=questions)


# --- Short forms (quick assessment) ---

SOS_S = _scale("SOS-S", "Sexual Opinion Survey (short form)", "sos_s", [
    "Thinking about sexual topics makes me uncomfortable.",
    "I would feel embarrassed discussing sexuality with a partner.",
    "Erotic material is something I prefer to avoid.",
    "I am curious about learning more about sexuality.",
    "Sexual feelings are a natural part of who I am.",
], reverse=(4, 5))

SGS_S = _scale("SGS-S", "Sex Guilt Scale (short form)", "sgs_s", [
    "I feel guilty after having sexual thoughts.",
    "Sexual desire is something to be ashamed of.",
    "I was taught that sex is dirty or sinful.",
    "I can enjoy intimacy without feeling guilty.",
], reverse=(4,))

SSR_S = _scale("SSR-S", "Sexual Satisfaction in Relationships (short form)", "ssr_s", [
    "I avoid talking with my partner about what I want.",
    "I hold back affection out of worry about being judged.",
    "I feel free to express my needs to my partner.",
], reverse=(3,))

SAQ_A = _scale("SAQ-A", "Sexual Attitudes Questionnaire (adolescent form)", "saq_a", [
    "Talking about puberty or bodies makes me want to leave the room.",
    "I feel I cannot ask adults questions about relationships.",
    "Crushes and attraction are a normal part of growing up.",
    "I worry that my feelings make me a bad person.",
], reverse=(3,))

# --- Long forms (full assessment) ---

SOS = _scale("SOS", "Sexual Opinion Survey", "sos", [
    "Thinking about sexual topics makes me uncomfortable.",
    "I would feel embarrassed discussing sexuality with a partner.",
    "Erotic material is something I prefer to avoid.",
    "I am curious about learning more about sexuality.",
    "Sexual feelings are a natural part of who I am.",
    "I change the subject when sex comes up in conversation.",
    "I feel comfortable with my own body.",
    "Sexual fantasies are harmless.",
], reverse=(4, 5, 7, 8))

SGS = _scale("SGS", "Sex Guilt Scale", "sgs", [
    "I feel guilty after having sexual thoughts.",
    "Sexual desire is something to be ashamed of.",
    "I was taught that sex is dirty or sinful.",
    "I can enjoy intimacy without feeling guilty.",
    "I punish myself for my sexual feelings.",
    "My upbringing still makes me uneasy about sex.",
], reverse=(4,))

SAS = _scale("SAS", "Sexual Anxiety Scale", "sas", [
    "I feel nervous in intimate situations.",
    "I worry about being judged sexually.",
    "Physical closeness makes me tense.",
    "I feel relaxed when I am affectionate with someone.",
    "I avoid situations that could become intimate.",
], reverse=(4,))

SSR = _scale("SSR", "Sexual Satisfaction in Relationships", "ssr", [
    "I avoid talking with my partner about what I want.",
    "I hold back affection out of worry about being judged.",
    "I feel free to express my needs to my partner.",
    "My partner and I can talk openly about intimacy.",
    "I pretend to be satisfied to avoid conflict.",
], reverse=(3, 4))

SAS_A = _scale("SAS-A", "Sexual Anxiety Scale (adolescent form)", "sas_a", [
    "I feel nervous when classmates talk about dating.",
    "I worry about what others think of my body.",
    "I feel okay about the changes my body is going through.",
], reverse=(3,))

SAG = _scale("SAG", "Sexuality and Ageing", "sag", [
    "I believe intimacy is no longer appropriate at my age.",
    "I feel embarrassed about sexual changes that come with age.",
    "I can still enjoy closeness and affection.",
], reverse=(3,))


ALL_SCALES: dict[str, ScaleDefinition] = {
    scale.id: scale
    for scale in (SOS_S, SGS_S, SSR_S, SAQ_A, SOS, SGS, SAS, SSR, SAS_A, SAG)
}


def _is_partnered(demographics: Demographics) -> bool:
    return demographics.relationship_status in PARTNERED_STATUSES


def get_adaptive_scales(demographics: Demographics) -> list[str]:
    """Scale ids for the quick assessment."""
    if demographics.is_minor:
        return [SAQ_A.id, SGS_S.id]
    scale_ids = [SOS_S.id, SGS_S.id]
    if _is_partnered(demographics):
        scale_ids.append(SSR_S.id)
    return scale_ids


def get_adaptive_full_scales(demographics: Demographics) -> list[str]:
    """Scale ids for the full assessment."""
    if demographics.is_minor:
        return [SAQ_A.id, SGS.id, SAS_A.id]
    scale_ids = [SOS.id, SGS.id, SAS.id]
    if _is_partnered(demographics):
        scale_ids.append(SSR.id)
    if demographics.age in OLDER_ADULT_BRACKETS:
        scale_ids.append(SAG.id)
    return scale_ids


def select_scales(demographics: Demographics, assessment_type: str) -> list[str]:
    """Default scale selector: ``(demographics, type) -> ordered scale ids``."""
    if assessment_type == "full":
        return get_adaptive_full_scales(demographics)
    return get_adaptive_scales(demographics)
