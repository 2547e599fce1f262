from .job_id_generator import JobIdGenerator
from .scheduler_job_template import ApschedulerTimer, SchedulerJobTemplate

__all__ = ["ApschedulerTimer", "JobIdGenerator", "SchedulerJobTemplate"]
