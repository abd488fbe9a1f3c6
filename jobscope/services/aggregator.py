"""
Aggregation over collections of JobPosting.

Everything here is recomputed from the postings on each call; nothing is
cached or updated incrementally.
"""
from collections import Counter
from datetime import datetime, timezone
from typing import Callable, Dict, Iterable, List, Optional

from jobscope.models.job_model import ( # pylint: disable=import-error
    CategoryStats,
    CompanyComparison,
    CompanyDataset,
    CompanyProfile,
    DatasetSummary,
    JobPosting,
    RoleBucket,
    SalaryComparison,
    SkillOverlap,
    SkillStat,
    SkillStrategy,
    SkippedJob,
)
from jobscope.services.salary_extractor import round_half_up # pylint: disable=import-error

# (keywords required together, role) - ordered, first match wins
ROLE_TAXONOMY = [
    ((('machine learning', 'ml engineer'),), 'ML Engineer'),
    ((('research',), ('scientist', 'engineer')), 'Research Scientist/Engineer'),
    ((('software engineer',), ('infrastructure',)), 'Infrastructure Engineer'),
    ((('software engineer',), ('frontend',)), 'Frontend Engineer'),
    ((('software engineer',),), 'Software Engineer'),
    ((('data scientist',),), 'Data Scientist'),
    ((('product manager',),), 'Product Manager'),
    ((('security',),), 'Security Engineer'),
    ((('devops', 'platform'),), 'DevOps/Platform'),
    ((('sales', 'business development'),), 'Sales/Business'),
    ((('design',),), 'Design'),
    ((('finance', 'accounting'),), 'Finance'),
    ((('legal',),), 'Legal'),
    ((('people', 'hr'),), 'People/HR'),
]
OTHER_ROLE = 'Other'


def salaried(jobs: Iterable[JobPosting]) -> List[JobPosting]:
    return [job for job in jobs if job.salary is not None]


def count_with_salary(jobs: Iterable[JobPosting]) -> int:
    return len(salaried(jobs))


def success_rate(jobs: List[JobPosting]) -> float:
    """Fraction of postings with a recovered salary, 0.0 for an empty batch."""
    if not jobs:
        return 0.0
    return round(count_with_salary(jobs) / len(jobs), 4)


def skill_counts(jobs: Iterable[JobPosting]) -> Counter:
    """Occurrences per skill. Counter keeps first-seen order for equal counts."""
    counts = Counter()
    for job in jobs:
        counts.update(job.skills)
    return counts


def most_common_skills(jobs: Iterable[JobPosting], limit: Optional[int] = 15) -> List[SkillStat]:
    """Skill frequency table, descending by count; ties keep first-seen order."""
    counts = skill_counts(jobs)
    ranked = sorted(counts.items(), key=lambda item: item[1], reverse=True)
    if limit is not None:
        ranked = ranked[:limit]
    return [SkillStat(skill=skill, count=count) for skill, count in ranked]


def highest_paying_jobs(jobs: Iterable[JobPosting], limit: Optional[int] = 10) -> List[JobPosting]:
    ranked = sorted(salaried(jobs), key=lambda job: job.salary.max, reverse=True)
    return ranked[:limit] if limit is not None else ranked


def lowest_paying_jobs(jobs: Iterable[JobPosting], limit: Optional[int] = 10) -> List[JobPosting]:
    ranked = sorted(salaried(jobs), key=lambda job: job.salary.min)
    return ranked[:limit] if limit is not None else ranked


def _group_stats(jobs: Iterable[JobPosting], key: Callable[[JobPosting], str]) -> List[CategoryStats]:
    groups: Dict[str, List[JobPosting]] = {}
    for job in jobs:
        groups.setdefault(key(job), []).append(job)

    stats = []
    for name, members in groups.items():
        paid = salaried(members)
        stats.append(CategoryStats(
            name=name,
            total=len(members),
            with_salary=len(paid),
            salary_ratio=round(len(paid) / len(members), 4),
            avg_min=round(sum(j.salary.min for j in paid) / len(paid), 1) if paid else None,
            avg_max=round(sum(j.salary.max for j in paid) / len(paid), 1) if paid else None,
        ))
    stats.sort(key=lambda s: s.total, reverse=True)
    return stats


def category_stats(jobs: Iterable[JobPosting]) -> List[CategoryStats]:
    """Per-department totals and salary averages, largest department first."""
    return _group_stats(jobs, lambda job: job.department.value)


def location_stats(jobs: Iterable[JobPosting]) -> List[CategoryStats]:
    return _group_stats(jobs, lambda job: job.location)


def summarize(jobs: List[JobPosting], top_skills: int = 15, top_jobs: int = 10) -> DatasetSummary:
    """Build the summary block for a batch. Pure: same input, same output."""
    return DatasetSummary(
        total_jobs=len(jobs),
        jobs_with_salary=count_with_salary(jobs),
        success_rate=success_rate(jobs),
        highest_paying_jobs=highest_paying_jobs(jobs, top_jobs),
        most_common_skills=most_common_skills(jobs, top_skills),
    )


def build_dataset(
    company: str,
    jobs: List[JobPosting],
    rules_version: str,
    skill_strategy: SkillStrategy = SkillStrategy.TITLE,
    source_url: Optional[str] = None,
    skipped: Optional[List[SkippedJob]] = None,
    top_skills: int = 15,
    top_jobs: int = 10,
    scraped_at: Optional[str] = None,
) -> CompanyDataset:
    return CompanyDataset(
        company=company,
        source_url=source_url,
        scraped_at=scraped_at or datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ"),
        rules_version=rules_version,
        skill_strategy=skill_strategy,
        jobs=jobs,
        summary=summarize(jobs, top_skills, top_jobs),
        skipped=skipped or [],
    )


def jobs_with_skill(jobs: Iterable[JobPosting], skill: str) -> List[JobPosting]:
    """Postings listing ``skill`` (exact, case-sensitive), best paid first."""
    matching = [job for job in jobs if skill in job.skills]
    return sorted(matching, key=lambda job: job.salary.max if job.salary else -1, reverse=True)


def find_similar_role(title: Optional[str]) -> str:
    """Company-agnostic role archetype for cross-company comparison."""
    title_lower = (title or "").lower()
    for groups, role in ROLE_TAXONOMY:
        if all(any(keyword in title_lower for keyword in group) for group in groups):
            return role
    return OTHER_ROLE


def company_profile(name: str, jobs: List[JobPosting], top_skills: int = 10) -> CompanyProfile:
    paid = salaried(jobs)
    avg_min = round_half_up(sum(j.salary.min for j in paid) / len(paid)) if paid else None
    avg_max = round_half_up(sum(j.salary.max for j in paid) / len(paid)) if paid else None
    return CompanyProfile(
        name=name,
        total_jobs=len(jobs),
        jobs_with_salary=len(paid),
        avg_salary_min=avg_min,
        avg_salary_max=avg_max,
        highest_salary=max((j.salary.max for j in paid), default=None),
        lowest_salary=min((j.salary.min for j in paid), default=None),
        top_skills=most_common_skills(jobs, top_skills),
    )


def _average_max(jobs: List[JobPosting]) -> Optional[int]:
    paid = salaried(jobs)
    if not paid:
        return None
    return round_half_up(sum(j.salary.max for j in paid) / len(paid))


def _ordered_skills(jobs: Iterable[JobPosting]) -> List[str]:
    return list(skill_counts(jobs).keys())


def compare_companies(a: CompanyDataset, b: CompanyDataset) -> CompanyComparison:
    """
    Compare two company snapshots.

    Args:
        a: First company's dataset
        b: Second company's dataset

    Returns:
        CompanyComparison with the average-salary winner (None on a tie or
        missing salary data), the skill overlap over every skill either
        company lists, role buckets by total count, and short insights.
    """
    profile_a = company_profile(a.company, a.jobs)
    profile_b = company_profile(b.company, b.jobs)

    salary = SalaryComparison()
    if profile_a.avg_salary_max is not None and profile_b.avg_salary_max is not None:
        avg_a = (profile_a.avg_salary_min + profile_a.avg_salary_max) / 2
        avg_b = (profile_b.avg_salary_min + profile_b.avg_salary_max) / 2
        winner = None
        if avg_a > avg_b:
            winner = a.company
        elif avg_b > avg_a:
            winner = b.company
        salary = SalaryComparison(
            winner=winner,
            company_a_avg=round_half_up(avg_a),
            company_b_avg=round_half_up(avg_b),
            difference=round_half_up(abs(avg_a - avg_b)),
        )

    skills_a = _ordered_skills(a.jobs)
    skills_b = _ordered_skills(b.jobs)
    set_a, set_b = set(skills_a), set(skills_b)
    overlap = SkillOverlap(
        common=[s for s in skills_a if s in set_b],
        unique_to_a=[s for s in skills_a if s not in set_b],
        unique_to_b=[s for s in skills_b if s not in set_a],
    )

    groups: Dict[str, Dict[str, List[JobPosting]]] = {}
    for side, jobs in (('a', a.jobs), ('b', b.jobs)):
        for job in jobs:
            bucket = groups.setdefault(find_similar_role(job.title), {'a': [], 'b': []})
            bucket[side].append(job)
    roles = [
        RoleBucket(
            role=role,
            company_a_count=len(members['a']),
            company_b_count=len(members['b']),
            company_a_avg_max=_average_max(members['a']),
            company_b_avg_max=_average_max(members['b']),
        )
        for role, members in groups.items()
    ]
    roles.sort(key=lambda r: r.company_a_count + r.company_b_count, reverse=True)

    return CompanyComparison(
        company_a=profile_a,
        company_b=profile_b,
        salary=salary,
        skills=overlap,
        roles=roles,
        insights=_insights(profile_a, profile_b, salary, overlap, roles),
    )


def _insights(
    profile_a: CompanyProfile,
    profile_b: CompanyProfile,
    salary: SalaryComparison,
    overlap: SkillOverlap,
    roles: List[RoleBucket],
) -> List[str]:
    insights = []
    if salary.winner:
        insights.append(f"{salary.winner} pays more on average, by about ${salary.difference}k")
    elif salary.company_a_avg is not None:
        insights.append(f"{profile_a.name} and {profile_b.name} have the same average salary")
    insights.append(
        f"{profile_a.name} has {profile_a.total_jobs} openings, {profile_b.name} has {profile_b.total_jobs}"
    )
    if overlap.common:
        insights.append(f"Shared skill requirements: {', '.join(overlap.common[:3])}")
    if roles:
        top = roles[0]
        insights.append(
            f"Most common role is {top.role}: {profile_a.name} {top.company_a_count}, "
            f"{profile_b.name} {top.company_b_count}"
        )
    if profile_a.highest_salary is not None and profile_b.highest_salary is not None:
        if profile_a.highest_salary > profile_b.highest_salary:
            insights.append(f"{profile_a.name} tops out at ${profile_a.highest_salary}k, "
                            f"above {profile_b.name}'s ${profile_b.highest_salary}k")
        elif profile_b.highest_salary > profile_a.highest_salary:
            insights.append(f"{profile_b.name} tops out at ${profile_b.highest_salary}k, "
                            f"above {profile_a.name}'s ${profile_a.highest_salary}k")
    return insights
