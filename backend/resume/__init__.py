# Resume module
from .parser import ResumeTextExtractor, parse_contact_info
