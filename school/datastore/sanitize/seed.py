"""
Built-in default snapshot.

Used on a cold start with no local cache, and as the per-field fallback for
the sanitizer. Dates are relative to the current local day so the demo data
always shows up in "recent" views.

The default snapshot has lastUpdated = 0, so any real local or remote data
(lastUpdated > 0) always wins arbitration against it.
"""

from __future__ import annotations

from datetime import date, timedelta

from ..models.snapshot import Snapshot
from .sanitizer import DEFAULT_PASSWORD, ROLE_ADMIN, ROLE_PARENT, ROLE_TEACHER

INITIAL_REWARD_BALANCE = 30


def shift_schedule(shift: str) -> str:
    """Class hours for a shift ("Matutino" or "Vespertino")."""
    return "07:30h às 11:30h" if shift == "Matutino" else "13:00h às 17:30h"


def build_default_snapshot(today: date | None = None) -> Snapshot:
    """Build the built-in default dataset.

    Args:
        today: Reference day for relative dates (defaults to the local today)

    Returns:
        Snapshot with lastUpdated = 0
    """
    today = today or date.today()

    def day(offset: int) -> str:
        return (today + timedelta(days=offset)).isoformat()

    subjects = [
        {"id": "subj-1", "name": "Matemática"},
        {"id": "subj-2", "name": "Português"},
        {"id": "subj-3", "name": "Ciências"},
        {"id": "subj-4", "name": "História"},
    ]

    teachers = [
        {
            "id": "teach-1", "name": "Prof. Carlos", "role": ROLE_TEACHER,
            "email": "carlos@school.com", "subjectIds": ["subj-1", "subj-3"],
            "password": DEFAULT_PASSWORD, "needsPasswordChange": True,
        },
        {
            "id": "teach-2", "name": "Prof. Ana", "role": ROLE_TEACHER,
            "email": "ana@school.com", "subjectIds": ["subj-2", "subj-4"],
            "password": DEFAULT_PASSWORD, "needsPasswordChange": True,
        },
    ]

    parents = [
        {
            "id": f"parent-{n}", "name": name, "role": ROLE_PARENT, "email": email,
            "studentId": f"stu-{n}", "password": DEFAULT_PASSWORD, "needsPasswordChange": True,
        }
        for n, name, email in (
            (1, "Sr. Silva", "silva@email.com"),
            (2, "Sra. Costa", "costa@email.com"),
            (3, "Sr. Souza", "souza@email.com"),
        )
    ]

    students = [
        {"id": "stu-1", "name": "João Silva", "classId": "class-1", "parentId": "parent-1", "status": "ativo"},
        {"id": "stu-2", "name": "Maria Costa", "classId": "class-1", "parentId": "parent-2", "status": "ativo"},
        {"id": "stu-3", "name": "Pedro Souza", "classId": "class-2", "parentId": "parent-3", "status": "ativo"},
    ]

    classes = [
        {
            "id": "class-1", "name": "1º Ano A", "teacherIds": ["teach-1", "teach-2"],
            "studentIds": ["stu-1", "stu-2"], "subjectIds": ["subj-1", "subj-2"],
            "shift": "Matutino", "schedule": shift_schedule("Matutino"),
        },
        {
            "id": "class-2", "name": "5º Ano B", "teacherIds": ["teach-1"],
            "studentIds": ["stu-3"], "subjectIds": ["subj-3", "subj-4"],
            "shift": "Vespertino", "schedule": shift_schedule("Vespertino"),
        },
    ]

    attendance = [
        {"studentId": "stu-1", "date": day(-2), "present": True},
        {"studentId": "stu-1", "date": day(-1), "present": True},
        {"studentId": "stu-1", "date": day(0), "present": False},
        {"studentId": "stu-2", "date": day(-2), "present": False},
        {"studentId": "stu-2", "date": day(-1), "present": True},
        {"studentId": "stu-2", "date": day(0), "present": True},
    ]

    class_logs = [
        {"id": "log-1", "classId": "class-1", "date": day(-1),
         "content": "Revisão de Frações", "subjectId": "subj-1"},
    ]

    calendar_events = [
        {"id": "event-1", "title": "Reunião de Pais", "date": day(5), "endDate": day(5),
         "description": "Reunião geral para discutir o desempenho do bimestre."},
        {"id": "event-2", "title": "Feira de Ciências", "date": day(20), "endDate": day(22),
         "classId": "class-1", "description": "Montagem de stands e apresentações."},
    ]

    transactions = [
        {
            "id": "trans-1", "description": "Mensalidade Fev/25 - João Silva", "amount": 500,
            "type": "INCOME", "date": day(-10), "dueDate": day(-10), "paidDate": day(-10),
            "category": "Mensalidade", "costCenterId": "cc-1", "studentId": "stu-1",
            "status": "PAID", "paymentMethod": "BOLETO",
        },
        {
            "id": "trans-2", "description": "Material de Limpeza", "amount": 150,
            "type": "EXPENSE", "date": day(-5), "dueDate": day(-5), "paidDate": day(-5),
            "category": "Manutenção", "costCenterId": "cc-2", "supplierId": "sup-1",
            "status": "PAID",
        },
        {
            "id": "trans-3", "description": "Conta de Energia", "amount": 300,
            "type": "EXPENSE", "date": day(2), "dueDate": day(2),
            "category": "Contas", "costCenterId": "cc-2", "supplierId": "sup-2",
            "status": "PENDING",
        },
    ]

    grades = [
        {"studentId": "stu-1", "subjectId": "subj-1", "grade": 8.5, "date": day(-5)},
        {"studentId": "stu-1", "subjectId": "subj-2", "grade": 7.0, "date": day(-4)},
        {"studentId": "stu-2", "subjectId": "subj-1", "grade": 9.0, "date": day(-5)},
        {"studentId": "stu-2", "subjectId": "subj-2", "grade": 9.5, "date": day(-4)},
        {"studentId": "stu-3", "subjectId": "subj-3", "grade": 6.5, "date": day(-3)},
    ]

    financial_categories = [
        {"id": "cat-1", "name": "Mensalidade", "type": "INCOME"},
        {"id": "cat-2", "name": "Matrícula", "type": "INCOME"},
        {"id": "cat-3", "name": "Material Didático", "type": "INCOME"},
        {"id": "cat-4", "name": "Salários", "type": "EXPENSE"},
        {"id": "cat-5", "name": "Manutenção", "type": "EXPENSE"},
        {"id": "cat-6", "name": "Contas de Consumo", "type": "EXPENSE"},
    ]

    financial_services = [
        {"id": "serv-1", "name": "Mensalidade Fundamental I", "value": 500},
        {"id": "serv-2", "name": "Mensalidade Fundamental II", "value": 650},
        {"id": "serv-3", "name": "Taxa de Material Anual", "value": 350},
        {"id": "serv-4", "name": "Transporte Escolar (Mensal)", "value": 180},
    ]

    discount_rules = [
        {"id": "disc-1", "name": "Irmãos (2º filho)", "type": "PERCENTAGE", "value": 10, "condition": "Família"},
        {"id": "disc-2", "name": "Pagamento Pontual", "type": "PERCENTAGE", "value": 5, "condition": "Pontualidade"},
        {"id": "disc-3", "name": "Bolsa Parcial", "type": "PERCENTAGE", "value": 50, "condition": "Social"},
    ]

    cost_centers = [
        {"id": "cc-1", "name": "Receita Operacional", "code": "1.0"},
        {"id": "cc-2", "name": "Administrativo", "code": "2.1"},
        {"id": "cc-3", "name": "Pedagógico", "code": "2.2"},
    ]

    suppliers = [
        {"id": "sup-1", "name": "Kalunga Papelaria", "category": "Material", "cnpj": "00.000.000/0001-00"},
        {"id": "sup-2", "name": "Enel Energia", "category": "Contas", "cnpj": "00.000.000/0002-00"},
    ]

    penalty_config = {"interestRate": 1.0, "finePercentage": 2.0, "gracePeriodDays": 5}

    favocoin_transactions = [
        {"id": f"ft-init-{s['id']}", "studentId": s["id"], "amount": INITIAL_REWARD_BALANCE,
         "description": "Saldo Inicial", "type": "EARN", "date": day(-10)}
        for s in students
    ]
    favocoin_transactions += [
        {"id": "ft-2", "studentId": "stu-1", "amount": 10, "description": "Presença Confirmada",
         "type": "EARN", "date": day(-2)},
        {"id": "ft-3", "studentId": "stu-1", "amount": 10, "description": "Presença Confirmada",
         "type": "EARN", "date": day(-1)},
        {"id": "ft-4", "studentId": "stu-1", "amount": -5, "description": "Falta Injustificada",
         "type": "PENALTY", "date": day(0)},
    ]

    store_items = [
        {"id": "item-1", "name": "Caneta Colorida Neon", "description": "Caneta gel com tinta neon.",
         "price": 50, "stock": 20},
        {"id": "item-2", "name": "Passaporte do Lanche", "description": "Pula a fila da cantina uma vez.",
         "price": 100, "stock": 10},
        {"id": "item-3", "name": "Dia sem Uniforme", "description": "Permissão para vir sem uniforme na sexta.",
         "price": 150, "stock": 50},
        {"id": "item-4", "name": "Sessão de Cinema",
         "description": "Ingresso para sessão de cinema na sala de vídeo (compra coletiva recomendada).",
         "price": 500, "stock": 1},
    ]

    admin = {
        "id": "admin-1", "name": "Admin", "role": ROLE_ADMIN, "email": "admin@school.com",
        "password": DEFAULT_PASSWORD, "needsPasswordChange": True,
    }

    return Snapshot.from_trusted(
        {
            "students": students,
            "teachers": teachers,
            "parents": parents,
            "classes": classes,
            "subjects": subjects,
            "attendance": attendance,
            "classLogs": class_logs,
            "calendarEvents": calendar_events,
            "transactions": transactions,
            "users": [admin, *teachers, *parents],
            "grades": grades,
            "favocoinTransactions": favocoin_transactions,
            "storeItems": store_items,
            "financialCategories": financial_categories,
            "financialServices": financial_services,
            "discountRules": discount_rules,
            "costCenters": cost_centers,
            "suppliers": suppliers,
            "penaltyConfig": penalty_config,
            "lastUpdated": 0,
        }
    )
