"""
Workload Type Enum.

The closed set of workloads the orchestrator knows how to run.
"""
from enum import Enum


class WorkloadType(str, Enum):
    """Known workload kinds. Each one maps to exactly one executable."""

    SETUP = "Setup"
    PREPARAZIONE_GENERAZIONE_CONTRATTI = "PreparazioneGenerazioneContratti"
    GENERA_CONTRATTI = "GeneraContratti"
    INIZIO_FIRMA_MASSIVA = "InizioFirmaMassiva"
    FINALIZZAZIONE_FIRMA_MASSIVA = "FinalizzazioneFirmaMassiva"
    PREPARAZIONE_FIRMA_VOLONTARI = "PreparazioneFirmaVolontari"
    INIZIO_FIRMA_VOLONTARI = "InizioFirmaVolontari"
    FINALIZZAZIONE_FIRMA_VOLONTARI = "FinalizzazioneFirmaVolontari"
    CHIUSURA_FASE_DI_FIRMA_DIGITALE = "ChiusuraFaseDiFirmaDigitale"
    PREPARAZIONE_FIRMA_ENTE = "PreparazioneFirmaEnte"
    INIZIO_FIRMA_ENTI = "InizioFirmaEnti"
    FINALIZZAZIONE_FIRMA_ENTI = "FinalizzazioneFirmaEnti"
    FINALIZZAZIONE_WORKFLOW = "FinalizzazioneWorkflow"
    CONTRATTI_CLEANUP = "ContrattiCleanup"

    def __str__(self) -> str:
        return self.value

    @property
    def ordinal(self) -> int:
        """Position of the workload in declaration order."""
        return list(WorkloadType).index(self)

    @property
    def description(self) -> str:
        """Human-readable description shown in the workload catalogue."""
        return WORKLOAD_DESCRIPTIONS.get(self, "Workload generico")


WORKLOAD_DESCRIPTIONS: dict[WorkloadType, str] = {
    WorkloadType.SETUP: "Applica eventuali cambiamenti sulla base dati e sul filesystem",
    WorkloadType.PREPARAZIONE_GENERAZIONE_CONTRATTI: "Prepara i dati per la generazione contratti",
    WorkloadType.GENERA_CONTRATTI: "Genera i contratti PDF",
    WorkloadType.INIZIO_FIRMA_MASSIVA: "Avvia il processo di firma massiva",
    WorkloadType.FINALIZZAZIONE_FIRMA_MASSIVA: "Finalizza la firma massiva",
    WorkloadType.PREPARAZIONE_FIRMA_VOLONTARI: "Prepara la firma digitale volontari",
    WorkloadType.INIZIO_FIRMA_VOLONTARI: "Avvia firma digitale volontari",
    WorkloadType.FINALIZZAZIONE_FIRMA_VOLONTARI: "Finalizza firma volontari",
    WorkloadType.CHIUSURA_FASE_DI_FIRMA_DIGITALE: "Chiude la fase di firma digitale",
    WorkloadType.PREPARAZIONE_FIRMA_ENTE: "Prepara firma digitale enti",
    WorkloadType.INIZIO_FIRMA_ENTI: "Avvia firma digitale enti",
    WorkloadType.FINALIZZAZIONE_FIRMA_ENTI: "Finalizza firma enti",
    WorkloadType.FINALIZZAZIONE_WORKFLOW: "Pone i contratti firmati dagli enti nello stato WorkflowCompletato",
    WorkloadType.CONTRATTI_CLEANUP: "Pulisce i contratti obsoleti",
}
