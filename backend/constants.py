"""
FernID - Constants
Fixed species catalog, classifier parameters and admin defaults
"""

# =============================================================================
# Fern Species
# =============================================================================
FERN_SPECIES_SLUGS = [
    'boston-fern',
    'maidenhair-fern',
    'birds-nest-fern',
    'staghorn-fern',
    'asparagus-fern',
]

# Seed catalog used by init_db.py (snake_case storage shape)
DEFAULT_FERN_SPECIES = {
    'boston-fern': {
        'common_name': 'Boston Fern',
        'scientific_name': 'Nephrolepis exaltata',
        'description': 'The Boston fern is a popular houseplant with gracefully arching fronds and delicate leaflets. It thrives in humid environments and is known for its air-purifying qualities.',
        'habitat': 'Native to tropical regions, particularly in Central and South America. Grows naturally in humid forests and swamps.',
        'care_requirements': 'Requires bright indirect light, high humidity (60-70%), consistent moisture in soil, and temperatures between 60-75°F. Mist regularly and keep soil evenly moist but not waterlogged.',
        'fun_facts': [
            'Can remove formaldehyde and xylene from indoor air',
            'Has been grown as an ornamental plant since the 1890s',
            'Can produce up to 50 fronds in ideal conditions',
            'Named after Boston, Massachusetts where it was first popularized',
        ],
    },
    'maidenhair-fern': {
        'common_name': 'Maidenhair Fern',
        'scientific_name': 'Adiantum raddianum',
        'description': 'Delicate and graceful fern with fan-shaped leaflets on thin black stems. Highly prized for its elegant appearance and lacy foliage.',
        'habitat': 'Found in moist, shaded areas near streams and waterfalls in tropical and temperate regions worldwide.',
        'care_requirements': 'Needs high humidity, consistently moist soil, indirect light, and protection from drafts. Water when top inch of soil feels dry. Prefers temperatures 60-75°F.',
        'fun_facts': [
            'The genus name "Adiantum" means "unwetted" because water beads up on its leaves',
            'Used in traditional medicine for respiratory ailments',
            'One of the most ancient fern species, dating back millions of years',
            'Extremely sensitive to chemicals in tap water - use filtered water',
        ],
    },
    'birds-nest-fern': {
        'common_name': "Bird's Nest Fern",
        'scientific_name': 'Asplenium nidus',
        'description': "A striking tropical fern with glossy, apple-green fronds that emerge from a central rosette, resembling a bird's nest.",
        'habitat': 'Native to tropical regions of Asia, Australia, and East Africa. Grows as an epiphyte on trees in rainforests.',
        'care_requirements': 'Thrives in medium to bright indirect light, high humidity, and temperatures between 60-80°F. Water when top inch of soil is dry. Avoid getting water in the center rosette.',
        'fun_facts': [
            'Fronds can grow up to 5 feet long in ideal conditions',
            'New fronds emerge tightly coiled and gradually unfurl',
            'Does not produce the typical fern-like divided leaves',
            'Can be grown mounted on wood like orchids',
        ],
    },
    'staghorn-fern': {
        'common_name': 'Staghorn Fern',
        'scientific_name': 'Platycerium bifurcatum',
        'description': 'Unique epiphytic fern with two types of fronds: shield-shaped sterile fronds and antler-shaped fertile fronds.',
        'habitat': 'Native to tropical and temperate regions of Australia, New Guinea, and Southeast Asia. Grows on trees in humid forests.',
        'care_requirements': 'Needs bright indirect light, moderate to high humidity, and infrequent but thorough watering. Best mounted on wood or grown in hanging baskets.',
        'fun_facts': [
            'Can live for decades with proper care',
            'The shield fronds turn brown but should not be removed',
            'Produces spores on the tips of fertile fronds',
            'One of only 18 species in the Platycerium genus',
        ],
    },
    'asparagus-fern': {
        'common_name': 'Asparagus Fern',
        'scientific_name': 'Asparagus aethiopicus',
        'description': 'Despite its name, not a true fern but a member of the lily family. Features feathery, light green foliage with a cascading growth habit.',
        'habitat': 'Native to South Africa. Grows in a variety of conditions from coastal to inland areas.',
        'care_requirements': 'Tolerates a wide range of light conditions, prefers well-draining soil, and moderate watering. Can handle some drought once established.',
        'fun_facts': [
            'Not actually a fern, but a flowering plant in the Asparagaceae family',
            'Produces small white flowers and red berries',
            'Can become invasive in some regions',
            'The berries are toxic to humans and pets',
        ],
    },
}

# =============================================================================
# Simulated Classifier
# =============================================================================
FERN_PROBABILITY = 0.7
PLANT_PROBABILITY_WHEN_NOT_FERN = 0.5

# (low, high) confidence bounds per outcome
CONFIDENCE_RANGES = {
    'fern': (0.85, 0.99),
    'plant': (0.80, 0.95),
    'none': (0.70, 0.90),
}

IMAGE_SIZE = 224

# =============================================================================
# Scan Progress (display only)
# =============================================================================
SCAN_STEPS = [
    'Uploading image',
    'Preprocessing image',
    'Analyzing features',
    'Classifying species',
    'Preparing results',
]

# =============================================================================
# Roles & Routes
# =============================================================================
ROLES = ['user', 'admin']

LOGIN_ROUTE = '/login'
ADMIN_LOGIN_ROUTE = '/admin/login'
DASHBOARD_ROUTE = '/dashboard'
ADMIN_DASHBOARD_ROUTE = '/admin'
HISTORY_ROUTE = '/history'

# Admin navigation and the capability each entry needs
ADMIN_NAV_ITEMS = [
    {'path': '/admin', 'label': 'Dashboard', 'permission': 'viewAnalytics'},
    {'path': '/admin/users', 'label': 'User Management', 'permission': 'manageUsers'},
    {'path': '/admin/species', 'label': 'Fern Species', 'permission': 'manageContent'},
    {'path': '/admin/scans', 'label': 'Scan Logs', 'permission': 'viewAnalytics'},
    {'path': '/admin/settings', 'label': 'Settings', 'permission': 'systemSettings'},
]

# =============================================================================
# Admin Settings Defaults (display only, never enforced)
# =============================================================================
DEFAULT_ADMIN_SETTINGS = {
    'general': {
        'app_name': 'Fern Classifier',
        'maintenance_mode': False,
        'allow_registration': True,
        'max_scans_per_user': 100,
    },
    'model': {
        'confidence_threshold': 85,
        'model_version': 'v2.1.0',
        'enable_auto_update': True,
        'jupyter_notebook_url': 'https://colab.research.google.com/your-notebook',
    },
    'notifications': {
        'email_notifications': True,
        'new_user_alert': True,
        'error_alert': True,
        'weekly_report': True,
        'admin_email': 'admin@fernclassifier.com',
    },
    'security': {
        'require_email_verification': True,
        'session_timeout': 30,
        'max_login_attempts': 5,
        'enable_two_factor': False,
    },
}

# =============================================================================
# API Response Messages
# =============================================================================
MESSAGES = {
    'INVALID_CREDENTIALS': 'Invalid email or password.',
    'INVALID_ADMIN_CREDENTIALS': 'Invalid admin credentials.',
    'DUPLICATE_ACCOUNT': 'An account with this email already exists. Please log in instead.',
    'PROFILE_RECREATE_FAILED': 'Account exists but profile setup failed.',
    'PROFILE_CREATE_FAILED': 'Account created but profile setup failed.',
    'REGISTER_FAILED': 'Unable to register. Please try again.',
    'REGISTER_UNEXPECTED': 'Unexpected error during registration.',
    'SCAN_SAVE_FAILED': 'Failed to save scan result. Please try again.',
    'INVALID_IMAGE': 'Invalid or corrupt image file',
    'SCAN_NOT_FOUND': 'Scan not found',
}
