"""Insider Risk Index questionnaire definitions.

Pillar weights and question weights are fixed, research-derived constants
(Ponemon Institute 2025 Cost of Insider Threats, Verizon DBIR 2024, Gartner
Market Guide for Insider Risk Management G00805757). A change to any of them
is a new questionnaire version, never an edit of an existing one.
"""

import logging
from typing import Dict, List

from riskindex.domain.exceptions import ConfigurationError
from .models import Pillar, Question, MaturityLevel, QuestionnaireConfig

logger = logging.getLogger(__name__)

DEFAULT_VERSION = "2025.1"

PILLARS_2025 = (
    Pillar(
        id="visibility",
        name="Visibility",
        weight=25,
        description="Monitoring and detection of insider activity across endpoints, applications and network.",
    ),
    Pillar(
        id="prevention-coaching",
        name="Prevention & Coaching",
        weight=25,
        description="Proactive measures and real-time coaching that stop risky behaviour before it becomes an incident.",
    ),
    Pillar(
        id="investigation-evidence",
        name="Investigation & Evidence",
        weight=20,
        description="Forensic capability, session reconstruction and cross-team investigation procedures.",
    ),
    Pillar(
        id="identity-saas",
        name="Identity & SaaS",
        weight=15,
        description="Identity and access management, MFA, privileged access and SaaS/OAuth control.",
    ),
    Pillar(
        id="phishing-resilience",
        name="Phishing Resilience",
        weight=15,
        description="Protection against phishing and social engineering, and the response to it.",
    ),
)

def _q(qid: str, pillar_id: str, weight: float, prompt: str) -> Question:
    return Question(id=qid, pillar_id=pillar_id, prompt=prompt, weight=weight)

QUESTIONS_2025 = (
    # Visibility
    _q("v1", "visibility", 0.30, "How comprehensive is your organization's endpoint monitoring and logging?"),
    _q("v2", "visibility", 0.25, "How effectively can you understand user intent and intervene in real-time?"),
    _q("v3", "visibility", 0.25, "How effectively do you capture user context and behavior across all applications?"),
    _q("v4", "visibility", 0.20, "What is your network traffic monitoring capability?"),
    # Prevention & Coaching
    _q("pc1", "prevention-coaching", 0.30, "How effectively do you guide and coach users during risky activities in real-time?"),
    _q("pc2", "prevention-coaching", 0.25, "What screening processes do you have for employees with privileged access?"),
    _q("pc3", "prevention-coaching", 0.20, "How well do you monitor and support employee well-being and satisfaction?"),
    _q("pc4", "prevention-coaching", 0.25, "What policies and procedures do you have for reporting suspicious behavior?"),
    # Investigation & Evidence
    _q("ie1", "investigation-evidence", 0.30, "What forensic investigation capabilities does your organization have?"),
    _q("ie2", "investigation-evidence", 0.25, "How effectively can you reconstruct and replay user sessions for investigations?"),
    _q("ie3", "investigation-evidence", 0.25, "What incident response procedures do you have for insider threats?"),
    _q("ie4", "investigation-evidence", 0.20, "How well do you coordinate with legal and HR teams during investigations?"),
    # Identity & SaaS
    _q("is1", "identity-saas", 0.30, "How robust is your identity and access management (IAM) system?"),
    _q("is2", "identity-saas", 0.25, "What multi-factor authentication (MFA) coverage do you have?"),
    _q("is3", "identity-saas", 0.25, "How do you manage privileged access and administrative accounts?"),
    _q("is4", "identity-saas", 0.20, "How effectively do you detect and prevent risky SaaS and OAuth application usage in real-time?"),
    # Phishing Resilience
    _q("pr1", "phishing-resilience", 0.30, "What email security controls do you have in place?"),
    _q("pr2", "phishing-resilience", 0.25, "How comprehensive is your phishing awareness training and testing?"),
    _q("pr3", "phishing-resilience", 0.25, "How effectively do you detect and prevent sophisticated phishing attacks in real-time?"),
    _q("pr4", "phishing-resilience", 0.20, "How do you handle and respond to social engineering incidents (phishing, smishing, vishing, etc.)?"),
)

MATURITY_LEVELS_2025 = (
    MaturityLevel(1, "Ad Hoc", "Reactive and informal. Significant gaps in insider risk management require immediate action.", 0),
    MaturityLevel(2, "Emerging", "Foundational controls exist but coverage is inconsistent. Comprehensive improvements needed.", 25),
    MaturityLevel(3, "Managed", "Defined program with some gaps. Targeted improvements recommended.", 45),
    MaturityLevel(4, "Proactive", "Strong, measured program. Minor enhancements suggested.", 65),
    MaturityLevel(5, "Optimized", "Leading insider risk management. Maintain and continuously refine current practices.", 85),
)

PILLAR_RECOMMENDATIONS_2025 = {
    "visibility": (
        "Deploy comprehensive monitoring tools across all endpoints and network segments.",
        "Implement user behavior analytics to detect anomalous activities.",
        "Establish baseline patterns for normal user and system behavior.",
        "Integrate security information and event management (SIEM) systems.",
    ),
    "prevention-coaching": (
        "Develop and deliver insider threat awareness training programs.",
        "Introduce real-time coaching that guides users during risky activities.",
        "Establish clear policies and procedures for reporting suspicious behavior.",
        "Create a positive workplace culture that reduces motivation for malicious activity.",
    ),
    "investigation-evidence": (
        "Establish forensic investigation capabilities and procedures.",
        "Implement comprehensive audit logging and retention policies.",
        "Train security team members in digital forensics techniques.",
        "Develop legal and HR coordination processes for investigations.",
    ),
    "identity-saas": (
        "Implement multi-factor authentication across all systems.",
        "Deploy privileged access management (PAM) solutions.",
        "Establish regular access reviews and certification processes.",
        "Implement just-in-time access provisioning for sensitive systems.",
    ),
    "phishing-resilience": (
        "Deploy advanced email security solutions with sandboxing capabilities.",
        "Implement regular phishing simulation and training programs.",
        "Establish clear procedures for reporting and responding to phishing attempts.",
        "Deploy endpoint detection and response (EDR) solutions.",
    ),
}

INDUSTRY_RECOMMENDATIONS_2025 = {
    "FINANCIAL_SERVICES": (
        "Implement transaction monitoring for unusual financial activities.",
        "Enhance segregation of duties in critical financial processes.",
    ),
    "HEALTHCARE": (
        "Strengthen PHI access controls and audit logging per HIPAA requirements.",
        "Implement medical record access monitoring with anomaly detection.",
    ),
    "TECHNOLOGY": (
        "Protect intellectual property with code repository monitoring.",
        "Monitor developer activities and source code access patterns.",
    ),
    "GOVERNMENT": (
        "Enhance clearance management and continuous vetting processes.",
        "Implement classification-based data controls and monitoring.",
    ),
    "RETAIL": (
        "Monitor point-of-sale systems for unauthorized access.",
        "Implement customer data protection controls.",
    ),
    "MANUFACTURING": (
        "Protect trade secrets and manufacturing processes.",
        "Monitor industrial control systems for insider tampering.",
    ),
    "EDUCATION": (
        "Protect student records and research data.",
        "Monitor administrative access to academic systems.",
    ),
}

SIZE_RECOMMENDATIONS_2025 = {
    "STARTUP_1_50": (
        "Focus on foundational security controls and awareness.",
        "Implement cost-effective cloud-based security solutions.",
    ),
    "SMALL_51_250": (
        "Build a dedicated security team or outsource to an MSSP.",
        "Implement centralized logging and monitoring.",
    ),
    "MID_251_1000": (
        "Establish security operations center (SOC) capabilities.",
        "Deploy enterprise DLP and SIEM solutions.",
    ),
    "LARGE_1001_5000": (
        "Establish an insider threat fusion center.",
        "Deploy a comprehensive identity governance platform.",
    ),
    "ENTERPRISE_5000_PLUS": (
        "Implement organization-wide zero-trust architecture.",
        "Create advanced analytics and predictive risk models.",
    ),
}

LEVEL_RECOMMENDATIONS_2025 = {
    1: (
        "Establish a formal insider risk management program with executive sponsorship.",
        "Conduct a comprehensive risk assessment to identify critical assets and vulnerabilities.",
        "Implement basic monitoring and logging across all critical systems.",
        "Develop incident response procedures specifically for insider threats.",
        "Create a security awareness training program focused on insider risk.",
    ),
    2: (
        "Enhance monitoring capabilities with user behavior analytics.",
        "Implement data loss prevention (DLP) solutions for sensitive data.",
        "Develop role-based training programs for high-risk positions.",
        "Establish formal investigation procedures with legal coordination.",
        "Deploy privileged access management (PAM) for administrative accounts.",
    ),
    3: (
        "Integrate threat intelligence feeds into detection systems.",
        "Implement zero-trust architecture principles organization-wide.",
        "Conduct regular tabletop exercises for insider threat scenarios.",
        "Enhance forensic capabilities with automated evidence collection.",
        "Develop predictive risk scoring for user activities.",
    ),
    4: (
        "Deploy machine learning models for anomaly detection.",
        "Implement continuous risk assessment and adaptive controls.",
        "Establish a threat hunting program focused on insider indicators.",
        "Create an insider threat fusion center with a cross-functional team.",
        "Develop automated response playbooks for common scenarios.",
    ),
    5: (
        "Optimize AI-driven detection with custom threat models.",
        "Implement predictive analytics for early threat identification.",
        "Establish continuous improvement metrics and benchmarking.",
        "Lead industry collaboration on insider threat intelligence.",
        "Develop advanced deception technologies and honeypots.",
    ),
}

SCORE_BAND_RECOMMENDATIONS_2025 = (
    (40.0, (
        "Establish a comprehensive insider risk management program with dedicated resources and executive sponsorship.",
        "Conduct a thorough risk assessment to identify your organization's most critical vulnerabilities.",
    )),
    (60.0, (
        "Enhance existing security controls with a focus on the lowest-scoring areas.",
        "Develop incident response procedures specific to insider threats.",
    )),
    (80.0, (
        "Fine-tune your insider risk program to address remaining gaps.",
        "Implement advanced analytics to improve threat detection capabilities.",
    )),
)

def _build_2025() -> QuestionnaireConfig:
    return QuestionnaireConfig(
        version=DEFAULT_VERSION,
        pillars=PILLARS_2025,
        questions=QUESTIONS_2025,
        maturity_levels=MATURITY_LEVELS_2025,
        pillar_recommendations=PILLAR_RECOMMENDATIONS_2025,
        industry_recommendations=INDUSTRY_RECOMMENDATIONS_2025,
        size_recommendations=SIZE_RECOMMENDATIONS_2025,
        level_recommendations=LEVEL_RECOMMENDATIONS_2025,
        score_band_recommendations=SCORE_BAND_RECOMMENDATIONS_2025,
    )

_REGISTRY: Dict[str, QuestionnaireConfig] = {}

def register_questionnaire(config: QuestionnaireConfig) -> None:
    """Register a questionnaire version. Versions are immutable once registered."""
    existing = _REGISTRY.get(config.version)
    if existing is not None and existing != config:
        raise ConfigurationError(
            f"Questionnaire version {config.version} is already registered with different content",
            config_field="version"
        ).add_suggestion("Publish the change under a new version")
    _REGISTRY[config.version] = config

def get_questionnaire(version: str = DEFAULT_VERSION) -> QuestionnaireConfig:
    """Return the questionnaire registered under ``version``."""
    try:
        return _REGISTRY[version]
    except KeyError:
        raise ConfigurationError(
            f"Unknown questionnaire version: {version}",
            config_field="scoring.questionnaire_version"
        ).add_suggestion(f"Use one of: {available_versions()}") from None

def available_versions() -> List[str]:
    return sorted(_REGISTRY)

register_questionnaire(_build_2025())
