ROLE_VALUES = [
    'student',
    'instructor',
    'admin',
]
STAFF_ROLES = frozenset({'instructor', 'admin'})

QUESTION_TYPE_MULTIPLE_CHOICE = 'multiple_choice'
QUESTION_TYPE_MULTIPLE_SELECT = 'multiple_select'
QUESTION_TYPE_TRUE_FALSE = 'true_false'
QUESTION_TYPE_VALUES = [
    QUESTION_TYPE_MULTIPLE_CHOICE,
    QUESTION_TYPE_MULTIPLE_SELECT,
    QUESTION_TYPE_TRUE_FALSE,
]
SINGLE_ANSWER_QUESTION_TYPES = frozenset({QUESTION_TYPE_MULTIPLE_CHOICE, QUESTION_TYPE_TRUE_FALSE})

ATTEMPT_STATUS_IN_PROGRESS = 'in_progress'
ATTEMPT_STATUS_COMPLETED = 'completed'
ATTEMPT_STATUS_EXPIRED = 'expired'
ATTEMPT_STATUS_VALUES = [
    ATTEMPT_STATUS_IN_PROGRESS,
    ATTEMPT_STATUS_COMPLETED,
    ATTEMPT_STATUS_EXPIRED,
]
TERMINAL_ATTEMPT_STATUSES = frozenset({ATTEMPT_STATUS_COMPLETED, ATTEMPT_STATUS_EXPIRED})

MIN_OPTIONS_PER_QUESTION = 2
MAX_OPTIONS_PER_QUESTION = 6
