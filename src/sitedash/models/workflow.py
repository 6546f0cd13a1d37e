# Rev 0.1.0
# src/sitedash/models/workflow.py
"""The fixed 23-step workflow every new project is seeded with."""
from __future__ import annotations

from typing import List, NamedTuple


class WorkflowStep(NamedTuple):
    name: str
    responsible: str


WORKFLOW_STEPS: tuple[WorkflowStep, ...] = (
    WorkflowStep("1. Understanding the System", "Project Manager"),
    WorkflowStep("2. Identifying Scope", "Site Engineer/Project coordinator"),
    WorkflowStep("3. Measurement", "Surveyor/Field Engineer"),
    WorkflowStep("4. Cross-Check Scope", "Site Engineer/Quality Inspector"),
    WorkflowStep("5. Calculate Project Cost", "Estimation Engineer/Cost Analyst"),
    WorkflowStep("6. Review Payment Terms", "Accounts Manager/Contract Specialist"),
    WorkflowStep("7. Calculate BOQ", "Estimation Engineer/Procurement Manager"),
    WorkflowStep("8. Compare Costs", "Procurement Manager/Cost Analyst"),
    WorkflowStep("9. Manage Materials", "Procurement Manager/Warehouse Supervisor"),
    WorkflowStep("10. Prepare BOQ for Production", "Production Planner"),
    WorkflowStep("11. Approval from Director", "Director/General Manager"),
    WorkflowStep("12. Prepare Invoices", "Accounts Manager"),
    WorkflowStep("13. Dispatch", "Logistics Manager"),
    WorkflowStep("14. Payment Follow-Up - 1st Call", "Accounts Manager"),
    WorkflowStep("15. Installation", "Installation Team Lead/Site Engineer"),
    WorkflowStep("16. Inspection", "Quality Inspector"),
    WorkflowStep("17. Payment Follow-Up - 2nd Call", "Accounts Manager"),
    WorkflowStep("18. Final Handover", "Project Manager/Site Engineer"),
    WorkflowStep("19. Final Payment Follow-Up", "Accounts Manager"),
    WorkflowStep("20. Closing The Deal", "Sales/Business Development Team"),
    WorkflowStep("21. System Clean Up", "Project Manager"),
    WorkflowStep("22. Documentation & Filing", "Admin/Project Coordinator"),
    WorkflowStep("23. Feedback Collection", "Project Manager"),
)


def seed_task_records(project_id: str) -> List[dict]:
    """Task rows for a freshly created project, all Pending at 0%."""
    return [
        {
            "ProjectID": project_id,
            "TaskName": step.name,
            "Responsible": step.responsible,
            "Status": "Pending",
            "Progress": 0,
            "Due_Date": "",
            "CompletedDate": "",
        }
        for step in WORKFLOW_STEPS
    ]
