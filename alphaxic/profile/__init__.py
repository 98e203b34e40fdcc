from alphaxic.profile.containers import (
    ChromatographProfile,
    ManifestRow,
    ProfileScan,
)
from alphaxic.profile.deduplication import ApexDeduplicator, group_by_peptide
from alphaxic.profile.envelope import EnvelopeFinder, ObservedEnvelopeFinder
from alphaxic.profile.isotopes import IsotopicReference, averagine_reference
from alphaxic.profile.walker import ProfileWalker
