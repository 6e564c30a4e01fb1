from paintops.business.dashboard.schemas import DashboardRead, RevenueSplit

__all__ = ["DashboardRead", "RevenueSplit"]
