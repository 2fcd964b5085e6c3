# Models package — import all models here so Alembic can discover them.

from sitewizard.models.user import User  # noqa: F401
from sitewizard.models.subscription import ClientSubscription  # noqa: F401
from sitewizard.models.intake import WebsiteIntake  # noqa: F401
from sitewizard.models.build_task import BuildTask  # noqa: F401
from sitewizard.models.revision import ModificationRequest  # noqa: F401
from sitewizard.models.notification import Notification  # noqa: F401
from sitewizard.models.stripe_event import StripeEvent  # noqa: F401
from sitewizard.models.audit import AuditEvent  # noqa: F401
