"""Subscription tier feature matrix."""
from typing import Dict, Optional

STARTER_FEATURES = frozenset({
    'basic_checkin', 'member_management', 'basic_reports',
})
GROWTH_FEATURES = STARTER_FEATURES | frozenset({
    'biometric_checkin', 'family_checkin', 'visitor_management',
    'history_tracking', 'follow_up_queue', 'email_notifications',
})
ENTERPRISE_FEATURES = GROWTH_FEATURES | frozenset({
    'full_analytics', 'sms_notifications', 'bulk_upload', 'advanced_roles',
    'multi_location', 'api_access', 'custom_branding',
})

ALL_FEATURES = ENTERPRISE_FEATURES

# An expired trial keeps the starter plan
TIER_FEATURES = {
    'trial': STARTER_FEATURES,
    'starter': STARTER_FEATURES,
    'growth': GROWTH_FEATURES,
    'enterprise': ENTERPRISE_FEATURES,
    'suspended': frozenset(),
}

# None means unlimited
TIER_LIMITS = {
    'trial': {'members': 100, 'monthly_reports': 5, 'email_notifications': 100, 'sms_notifications': 0},
    'starter': {'members': 100, 'monthly_reports': 5, 'email_notifications': 100, 'sms_notifications': 0},
    'growth': {'members': None, 'monthly_reports': 50, 'email_notifications': 1000, 'sms_notifications': 0},
    'enterprise': {'members': None, 'monthly_reports': None, 'email_notifications': None, 'sms_notifications': None},
    'suspended': {'members': 0, 'monthly_reports': 0, 'email_notifications': 0, 'sms_notifications': 0},
}

def _tier_name(tier) -> str:
    return getattr(tier, 'value', tier)

def has_feature(tier, feature: str, trial_active: bool = False) -> bool:
    """Whether a subscription tier includes a feature."""
    name = _tier_name(tier)
    if name == 'suspended':
        return False
    if trial_active:
        return feature in ALL_FEATURES
    return feature in TIER_FEATURES.get(name, frozenset())

def usage_limit(tier, usage: str, trial_active: bool = False) -> Optional[int]:
    """Allowance for a usage counter, None when unlimited."""
    name = _tier_name(tier)
    if trial_active and name != 'suspended':
        return None
    return TIER_LIMITS.get(name, TIER_LIMITS['starter']).get(usage, 0)

class FeatureService:
    """Feature checks bound to a church."""

    @staticmethod
    def church_has_feature(church, feature: str) -> bool:
        return has_feature(church.subscription_tier, feature, church.is_trial_active())

    @staticmethod
    def feature_map(church) -> Dict[str, bool]:
        return {
            feature: FeatureService.church_has_feature(church, feature)
            for feature in sorted(ALL_FEATURES)
        }

    @staticmethod
    def usage_summary(church) -> Dict:
        count = church.member_count()
        limit = church.max_members
        return {
            'subscriptionTier': church.subscription_tier.value,
            'isTrialActive': church.is_trial_active(),
            'trialDaysRemaining': church.trial_days_remaining(),
            'members': {
                'current': count,
                'limit': limit,
                'percent': round(count / limit * 100) if limit else 0,
            },
            'monthlyReports': {
                'current': FeatureService.reports_this_month(church),
                'limit': usage_limit(church.subscription_tier, 'monthly_reports', church.is_trial_active()),
            },
        }

    @staticmethod
    def can_add_members(church, count: int = 1) -> bool:
        return church.member_count() + count <= church.max_members

    @staticmethod
    def reports_this_month(church) -> int:
        from churchconnect.models import ReportRun
        from churchconnect.utils.helpers import utcnow

        start = utcnow().replace(day=1, hour=0, minute=0, second=0, microsecond=0)
        return ReportRun.query.filter(
            ReportRun.church_id == church.id,
            ReportRun.generated_at >= start
        ).count()
