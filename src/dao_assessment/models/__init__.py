from dao_assessment.models.assessment import TRAITS, Assessment
from dao_assessment.models.candidate import Candidate

__all__ = ["TRAITS", "Assessment", "Candidate"]
