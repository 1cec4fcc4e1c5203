from .harvester import EvidenceHarvester, HarvestReport, slugify

__all__ = ["EvidenceHarvester", "HarvestReport", "slugify"]
