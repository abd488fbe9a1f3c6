"""
Skill inference for job postings.

Two strategies, chosen per run:

1. Content scan - checks the normalized requirements text against a table of
   (skill, predicate) pairs. A handful of skills need context words next to
   the keyword before they count ("react" alone shows up in "react quickly to
   incidents").
2. Title rules - maps the job title to a role archetype with an ordered rule
   list. The first matching rule decides the whole skill list. Rule lists are
   versioned so stored snapshots can be re-scored with a newer set on demand.

Both return skills from SKILL_VOCABULARY only, in rule order, without duplicates.
"""
import logging
import re
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Tuple

from jobscope.core.errors import UnknownRulesVersionError # pylint: disable=import-error
from jobscope.models.job_model import SkillStrategy # pylint: disable=import-error

logger = logging.getLogger(__name__)

Predicate = Callable[[str], bool]

SKILL_VOCABULARY = frozenset([
    # Languages
    'Python', 'C++', 'Go', 'Rust', 'Java', 'Swift', 'TypeScript', 'JavaScript', 'SQL',
    # Frameworks and tools
    'PyTorch', 'TensorFlow', 'CUDA', 'React', 'HTML/CSS', 'Git',
    'Kubernetes', 'Docker', 'PostgreSQL', 'Redis', 'Linux/Unix',
    # Cloud
    'AWS', 'Google Cloud', 'Azure',
    # Domains
    'Machine Learning', 'Deep Learning', 'Distributed Systems', 'Microservices',
    # Facilities
    'MEP Systems', 'Data Center Design', 'Power Systems', 'Cooling Systems', 'UPS Systems',
    'Critical Infrastructure', 'CAD/Design Software', 'Vendor Management',
    # Business
    'Project Management', 'Leadership', 'Sales', 'Customer Success',
])


# ============================================================================
# PREDICATE HELPERS
# ============================================================================

def has_any(*terms: str) -> Predicate:
    return lambda text: any(term in text for term in terms)


def has_word(*words: str) -> Predicate:
    pattern = re.compile(r'\b(?:' + '|'.join(re.escape(w) for w in words) + r')\b')
    return lambda text: pattern.search(text) is not None


def either(*predicates: Predicate) -> Predicate:
    return lambda text: any(p(text) for p in predicates)


def both(*predicates: Predicate) -> Predicate:
    return lambda text: all(p(text) for p in predicates)


def lacks(*terms: str) -> Predicate:
    return lambda text: not any(term in text for term in terms)


def matches(pattern: str) -> Predicate:
    compiled = re.compile(pattern)
    return lambda text: compiled.search(text) is not None


# ============================================================================
# CONTENT SCAN
# ============================================================================

_CLOUD_CONTEXT = has_any('cloud', 'infrastructure', 'deployment')

# "go" is only trusted as golang or when listed next to other languages
_GO_LANGUAGE = matches(r'\bgolang\b|(?:\b(?:in|and|or)\s+|[,/(]\s*)go\b(?!\s*-?\s*to\b)|\bgo\s*[,/)]')

CONTENT_RULES: List[Tuple[str, Predicate]] = [
    ('Python', has_any('python')),
    ('PyTorch', either(has_any('pytorch'), has_word('torch'))),
    ('TensorFlow', has_any('tensorflow')),
    ('CUDA', has_any('cuda')),
    ('C++', either(has_any('c++'), has_word('cpp'))),
    ('Go', _GO_LANGUAGE),
    ('Rust', has_word('rust')),
    ('Java', has_word('java')),
    ('TypeScript', has_any('typescript')),
    ('React', both(
        either(
            has_any('react.js', 'reactjs', 'react js'),
            both(has_word('react'), has_any('component', 'framework', 'frontend', 'javascript', 'experience')),
        ),
        lacks('reactive', 'reaction', 'react to', 'react quickly'),
    )),
    ('JavaScript', both(
        either(has_any('javascript'), has_word('js')),
        has_any('frontend', 'web', 'browser', 'node'),
    )),
    ('HTML/CSS', both(
        has_word('html', 'css'),
        either(has_any('frontend', 'web', 'website'), has_word('ui')),
    )),
    ('Git', both(
        has_any('git'),
        lacks('digit', 'digital'),
        has_any('version control', 'repository', 'github', 'gitlab'),
    )),
    ('Kubernetes', either(has_any('kubernetes'), has_word('k8s'))),
    ('Docker', has_any('docker')),
    ('AWS', both(either(has_word('aws'), has_any('amazon web services')), _CLOUD_CONTEXT)),
    ('Google Cloud', both(either(has_word('gcp'), has_any('google cloud')), _CLOUD_CONTEXT)),
    ('Azure', both(has_word('azure'), _CLOUD_CONTEXT)),
    ('Linux/Unix', has_word('linux', 'unix')),
    ('SQL', has_any('sql')),
    ('PostgreSQL', has_any('postgres')),
    ('Redis', has_word('redis')),
    ('Swift', both(has_word('swift'), either(has_word('ios', 'xcode', 'swiftui'), has_any('apple')))),
    ('Machine Learning', both(
        either(has_any('machine learning', 'artificial intelligence'), has_word('ml')),
        has_any('experience', 'background', 'knowledge'),
    )),
    ('Deep Learning', has_any('deep learning')),
    ('Distributed Systems', has_any('distributed systems')),
    ('Microservices', has_any('microservices')),
    ('MEP Systems', either(has_word('mep'), has_any('mechanical, electrical'))),
    ('Data Center Design', has_any('data center', 'datacenter')),
    ('Power Systems', has_any('power systems', 'power distribution', 'electrical systems')),
    ('Cooling Systems', either(has_any('cooling'), has_word('hvac'))),
    ('UPS Systems', has_any('ups system', 'uninterruptible power')),
    ('Critical Infrastructure', has_any('critical infrastructure', 'mission critical')),
    ('CAD/Design Software', either(has_word('cad', 'revit'), has_any('autocad'))),
    ('Vendor Management', has_any('vendor management')),
    ('Project Management', has_any('project management')),
    ('Leadership', has_any('leadership')),
]


def infer_skills_from_text(text: Optional[str]) -> List[str]:
    """
    Content-scan strategy.

    Args:
        text: Normalized (lowercased) requirements text

    Returns:
        Skills whose predicate holds, in table order
    """
    if not text:
        return []
    text = text.lower()
    return [skill for skill, predicate in CONTENT_RULES if predicate(text)]


# ============================================================================
# TITLE RULES
# ============================================================================

@dataclass(frozen=True)
class TitleRule:
    """One archetype: when ``when`` holds, emit ``skills`` (plus ``bonus`` if ``bonus_when`` holds)"""
    name: str
    when: Predicate
    skills: Tuple[str, ...]
    bonus_when: Optional[Predicate] = None
    bonus: Tuple[str, ...] = ()

    def apply(self, title: str) -> List[str]:
        result = list(self.skills)
        if self.bonus_when is not None and self.bonus_when(title):
            result.extend(self.bonus)
        return result


@dataclass(frozen=True)
class RuleSet:
    version: str
    name: str
    rules: Tuple[TitleRule, ...]
    changelog: Tuple[str, ...] = field(default_factory=tuple)

    def infer(self, title: Optional[str]) -> List[str]:
        title_lower = (title or "").lower()
        for rule in self.rules:
            if rule.when(title_lower):
                return _dedupe(rule.apply(title_lower))
        return []

    def matching_rule(self, title: Optional[str]) -> Optional[str]:
        title_lower = (title or "").lower()
        for rule in self.rules:
            if rule.when(title_lower):
                return rule.name
        return None


FRONTEND = ('React', 'JavaScript', 'HTML/CSS')
BACKEND = ('Python', 'Go', 'SQL')
FULL_STACK = ('JavaScript', 'React', 'Python', 'SQL')
ML = ('Python', 'PyTorch', 'Machine Learning')
INFRA = ('Kubernetes', 'Docker', 'Google Cloud', 'Linux/Unix')
FACILITIES = ('MEP Systems', 'Data Center Design', 'Power Systems', 'Project Management')

_is_frontend = has_any('frontend', 'front-end', 'ui engineer')
_is_backend = has_any('backend', 'back-end')
_is_full_stack = has_any('full stack', 'fullstack', 'full-stack')
_is_infra = either(has_any('infrastructure', 'devops'), has_word('sre'))
_is_data_center = has_any('data center', 'datacenter', 'stargate')
_is_ios = has_word('ios')
_is_android = has_any('android')

CONSERVATIVE_RULES = (
    TitleRule('frontend', _is_frontend, FRONTEND),
    TitleRule('backend', _is_backend, BACKEND),
    TitleRule('full_stack', _is_full_stack, FULL_STACK),
    TitleRule('machine_learning', either(has_any('machine learning'), has_word('ml', 'ai')), ML),
    TitleRule('research_engineer', both(has_any('research'), has_any('engineer')), ML),
    TitleRule('data', both(has_any('data'), has_any('scientist', 'engineer')), ('Python', 'SQL', 'Machine Learning')),
    TitleRule('infrastructure', _is_infra, INFRA),
    TitleRule('security', has_any('security'), ('Python', 'Linux/Unix')),
    TitleRule('gpu', has_any('gpu', 'cuda', 'kernels'), ('Python', 'C++', 'CUDA', 'PyTorch')),
    TitleRule('ios', _is_ios, ('Swift',)),
    TitleRule('android', _is_android, ('Java',)),
    TitleRule('data_center', _is_data_center, FACILITIES),
    TitleRule('manufacturing', has_any('manufacturing'), ('CAD/Design Software', 'Project Management')),
    TitleRule('sales', has_any('sales', 'account'), ('Sales', 'Customer Success')),
    TitleRule('engineer', has_any('engineer'), ('Python',)),
)

_is_data = has_any('data')

REFINED_RULES = (
    TitleRule('frontend', _is_frontend, FRONTEND),
    TitleRule('backend', _is_backend, BACKEND),
    TitleRule('full_stack', _is_full_stack, FULL_STACK),
    TitleRule('machine_learning', either(has_any('machine learning'), has_word('ml')), ML),
    TitleRule('research', both(has_any('research'), has_any('engineer', 'scientist')), ML),
    TitleRule('data_scientist', has_any('data scientist'), ('Python', 'SQL', 'Machine Learning')),
    TitleRule('data_visualization', both(_is_data, either(has_any('visualization'), has_word('viz'))),
              ('Python', 'SQL', 'JavaScript')),
    TitleRule('data_infrastructure', both(_is_data, has_any('infrastructure', 'platform')),
              ('Python', 'SQL', 'Kubernetes', 'Docker')),
    TitleRule('data_center', _is_data_center, FACILITIES),
    TitleRule('data_engineer', both(_is_data, has_any('engineer')), ('Python', 'SQL'),
              bonus_when=either(has_word('ai'), has_any('artificial', 'learning', 'model')),
              bonus=('Machine Learning',)),
    TitleRule('infrastructure', _is_infra, INFRA),
    TitleRule('security', has_any('security'), ('Python', 'Linux/Unix')),
    TitleRule('gpu', has_any('gpu', 'cuda', 'kernels', 'inference'), ('Python', 'C++', 'CUDA'),
              bonus_when=either(has_any('inference'), has_word('ml', 'ai')),
              bonus=('PyTorch', 'Machine Learning')),
    TitleRule('ios', _is_ios, ('Swift',)),
    TitleRule('android', _is_android, ('Java',)),
    TitleRule('hardware', has_any('manufacturing', 'hardware', 'mechanical'), ('Project Management',),
              bonus_when=has_any('design'),
              bonus=('CAD/Design Software',)),
    TitleRule('sales', has_any('sales', 'account', 'business'), ('Sales', 'Customer Success')),
    TitleRule('engineer', has_any('engineer'), ('Python',)),
    TitleRule('management', either(has_any('manager', 'director'), has_word('lead')),
              ('Leadership', 'Project Management')),
)

RULE_SETS: Dict[str, RuleSet] = {
    "1": RuleSet(
        version="1",
        name="conservative",
        rules=CONSERVATIVE_RULES,
        changelog=(
            "Title-only inference replacing full-page keyword scan",
            "One archetype per title, first match wins",
        ),
    ),
    "2": RuleSet(
        version="2",
        name="refined",
        rules=REFINED_RULES,
        changelog=(
            "Data titles split into scientist, visualization, infrastructure, data center and engineer",
            "Data engineers get Machine Learning only when the title mentions AI, learning or models",
            "Inference roles join the GPU archetype with PyTorch and Machine Learning",
            "Hardware and mechanical roles grouped with manufacturing",
            "Business titles map to sales",
            "Manager, director and lead titles map to leadership skills",
        ),
    ),
}

DEFAULT_RULES_VERSION = "2"


def get_rule_set(version: Optional[str] = None) -> RuleSet:
    """Look up a registered rule set. ``None`` selects the default version."""
    key = str(version) if version is not None else DEFAULT_RULES_VERSION
    try:
        return RULE_SETS[key]
    except KeyError as e:
        raise UnknownRulesVersionError(key) from e


def infer_skills_from_title(title: Optional[str], rules_version: Optional[str] = None) -> List[str]:
    """Title strategy. Total over any title; unknown versions raise UnknownRulesVersionError."""
    return get_rule_set(rules_version).infer(title)


def infer_skills(
    title: Optional[str],
    text: Optional[str] = None,
    strategy: SkillStrategy = SkillStrategy.TITLE,
    rules_version: Optional[str] = None,
) -> List[str]:
    """
    Run the selected strategy.

    The content strategy needs page text; without it the title rules are used.
    """
    if strategy == SkillStrategy.CONTENT and text:
        return _dedupe(infer_skills_from_text(text))
    if strategy == SkillStrategy.CONTENT:
        logger.debug(f"No page text for '{title}', using title rules")
    return infer_skills_from_title(title, rules_version)


def _dedupe(skills: List[str]) -> List[str]:
    seen = set()
    result = []
    for skill in skills:
        if skill in SKILL_VOCABULARY and skill not in seen:
            seen.add(skill)
            result.append(skill)
    return result
