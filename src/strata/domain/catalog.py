"""Built-in domain catalog.

Keywords drive routing (see ``DomainKnowledgeProvider.match_by_keywords``)
and mix Korean and English forms as they appear in program notices.
Catalog order is the tie-break order for routing.
"""

from __future__ import annotations

from strata.domain.models import DomainDefinition
from strata.domain.models import DomainRule
from strata.domain.models import DomainTerm

_T = DomainTerm
_R = DomainRule

MANUFACTURING = DomainDefinition(
    domain_id="manufacturing",
    label="Manufacturing & Smart Factory",
    description="Smart factory build-outs, MES/PLC integration, quality control, settlement reports.",
    keywords=(
        "제조업", "스마트공장", "MES", "PLC", "OPC-UA", "4M1E", "OEE",
        "품질관리", "ISO", "설비", "생산", "공정", "자동화", "로봇",
        "금형", "사출", "용접", "조립", "CNC", "CAD/CAM",
    ),
    terms=(
        _T(name="MES", description="Manufacturing execution system tracking work orders, lots and yield on the shop floor."),
        _T(name="PLC", description="Programmable logic controller driving individual machines; source of raw equipment data."),
        _T(name="OEE", description="Overall equipment effectiveness = availability x performance x quality."),
        _T(name="4M1E", description="Man, machine, material, method and environment; the root-cause checklist for defects."),
        _T(name="OPC-UA", description="Vendor-neutral protocol used to collect PLC data into the MES."),
        _T(name="스마트공장 수준확인", description="Smart factory maturity assessment (levels 1 to 5) required before and after support."),
    ),
    rules=(
        _R(name="Quantified targets", description="State before/after KPIs (OEE, defect rate, lead time) with measurement method."),
        _R(name="Settlement evidence", description="Every expense in the settlement report needs a tax invoice and an installation photo."),
        _R(name="Supplier registration", description="Only suppliers registered with the smart manufacturing innovation center may be contracted."),
    ),
    required_documents=(
        "사업자등록증", "공장등록증", "ISO 인증서", "설비 목록", "MES 시스템 구성도", "생산 실적 데이터",
    ),
    token_budget=1600,
)

ENVIRONMENT = DomainDefinition(
    domain_id="environment",
    label="Environment & Energy",
    description="Stack monitoring (TMS), emissions reporting, carbon neutrality, ESG, environmental permits.",
    keywords=(
        "TMS", "CleanSYS", "NOx", "SOx", "PM", "배출량", "대기오염",
        "탄소중립", "ESG", "온실가스", "에너지효율", "재생에너지",
        "환경영향평가", "폐수", "폐기물", "소음진동",
    ),
    terms=(
        _T(name="TMS", description="Tele-monitoring system reporting stack emissions to the regulator every 5 minutes."),
        _T(name="CleanSYS", description="National portal receiving TMS data; source of official emission records."),
        _T(name="NOx/SOx", description="Nitrogen and sulfur oxides; regulated pollutants with legal ppm limits per facility class."),
        _T(name="Scope 1/2", description="Direct emissions and purchased-energy emissions in a greenhouse gas inventory."),
        _T(name="배출권거래제", description="Korean emissions trading scheme; allocation depends on verified inventory."),
    ),
    rules=(
        _R(name="Legal limits", description="Quote the applicable legal emission limit next to every measured value."),
        _R(name="Reduction baseline", description="Reductions are measured against the last three-year average, not a single year."),
        _R(name="Permit status", description="Applicants must hold a valid discharge facility permit at the time of application."),
    ),
    required_documents=(
        "배출시설 설치허가증", "방지시설 설치 현황", "TMS 연동 확인서", "측정기록부", "온실가스 배출량 명세서",
    ),
    token_budget=1600,
)

DIGITAL = DomainDefinition(
    domain_id="digital",
    label="Digital & AI",
    description="AI vouchers, data vouchers, cloud migration, digital transformation.",
    keywords=(
        "AI", "인공지능", "머신러닝", "딥러닝", "데이터", "빅데이터",
        "클라우드", "SaaS", "API", "디지털전환", "DX",
        "소프트웨어", "IT", "ICT", "플랫폼",
    ),
    terms=(
        _T(name="AI 바우처", description="Voucher that pays a registered AI supplier to deliver a solution to a demand company."),
        _T(name="공급기업", description="Supplier company registered in the voucher pool; delivers the solution."),
        _T(name="수요기업", description="Demand company receiving the solution; usually the applicant."),
        _T(name="NIPA", description="National IT Industry Promotion Agency; runs the AI and cloud voucher programs."),
        _T(name="DX", description="Digital transformation; replacing manual processes with data-driven systems."),
    ),
    rules=(
        _R(name="Supplier match", description="Name the matched supplier and the solution catalogue entry in the plan."),
        _R(name="Usage plan", description="The voucher usage plan lists deliverables per month with acceptance criteria."),
        _R(name="Data rights", description="State who owns the training data and the trained model after the project."),
    ),
    required_documents=(
        "AI 공급기업 등록증", "수요기업 사업자등록증", "바우처 사용 계획서", "AI 솔루션 명세서",
    ),
    token_budget=1600,
)

FINANCE = DomainDefinition(
    domain_id="finance",
    label="Loans & Guarantees",
    description="Policy loans and credit guarantees from KIBO, KODIT, SEMAS and KOSME.",
    keywords=(
        "융자", "보증", "기술보증", "신용보증", "정책자금",
        "시설자금", "운전자금", "창업자금", "기보", "신보",
        "소상공인", "중소기업", "신용등급", "담보",
    ),
    terms=(
        _T(name="기보", description="Korea Technology Finance Corporation; guarantees based on technology assessment."),
        _T(name="신보", description="Korea Credit Guarantee Fund; guarantees based on credit and sales."),
        _T(name="운전자금", description="Working capital loan; limit tied to recent annual revenue."),
        _T(name="시설자금", description="Facility loan for equipment or plant; requires quotes and installation plan."),
        _T(name="기술평가", description="Technology assessment grade (T1 to T10) that sets the guarantee ratio."),
    ),
    rules=(
        _R(name="Repayment plan", description="Show monthly cash flow covering repayment for the full loan term."),
        _R(name="Use of funds", description="Funds may only be spent on the purpose declared in the application."),
        _R(name="Tax arrears", description="Applicants with unpaid national or local taxes are ineligible."),
    ),
    required_documents=(
        "사업자등록증", "재무제표 (최근 3년)", "부가세 신고서", "4대보험 가입내역", "자금 사용 계획서",
    ),
    token_budget=1600,
)

STARTUP = DomainDefinition(
    domain_id="startup",
    label="Startup Support",
    description="Pre-startup, early-stage and scale-up packages, TIPS, accelerating.",
    keywords=(
        "창업", "스타트업", "예비창업", "초기창업", "창업도약",
        "TIPS", "액셀러레이터", "VC", "투자", "벤처",
        "기술창업", "청년창업", "재창업",
    ),
    terms=(
        _T(name="예비창업패키지", description="Pre-startup package for founders without a registered business."),
        _T(name="초기창업패키지", description="Early-stage package for businesses under three years old."),
        _T(name="창업도약패키지", description="Scale-up package for businesses three to seven years old."),
        _T(name="TIPS", description="Tech incubator program; government R&D matched to private investment by an operator."),
        _T(name="PSST", description="Problem, solution, scale-up, team; the mandated business plan structure."),
    ),
    rules=(
        _R(name="PSST structure", description="Business plans follow the problem, solution, scale-up, team order."),
        _R(name="Founder eligibility", description="Check business age against the package limit on the notice date."),
        _R(name="Matching funds", description="Cash and in-kind self-funding shares must meet the notice minimums."),
    ),
    required_documents=(
        "사업자등록증 (또는 미등록)", "대표자 신분증", "경력증명서", "창업 아이템 증빙 (특허, 시제품 등)",
    ),
    token_budget=1600,
)

EXPORT = DomainDefinition(
    domain_id="export",
    label="Export & Global",
    description="Overseas tenders, export vouchers, foreign certification, trade insurance.",
    keywords=(
        "수출", "해외", "글로벌", "입찰", "SAM.gov", "UNGM",
        "FTA", "관세", "무역", "물류", "해외인증", "CE", "FDA",
        "바이어", "박람회", "통관",
    ),
    terms=(
        _T(name="수출바우처", description="Export voucher spent on a menu of marketing, certification and logistics services."),
        _T(name="KOTRA", description="Korea Trade-Investment Promotion Agency; overseas market research and buyer matching."),
        _T(name="SAM.gov", description="US federal procurement registry; a UEI is required before bidding."),
        _T(name="UNGM", description="United Nations Global Marketplace for UN agency tenders."),
        _T(name="FTA 원산지", description="Certificate of origin needed to claim preferential FTA tariffs."),
    ),
    rules=(
        _R(name="Export record", description="Report export results in USD with customs clearance evidence."),
        _R(name="English materials", description="Company profile and catalogue must be available in English."),
        _R(name="Certification timing", description="Foreign certification costs count only if issued within the support period."),
    ),
    required_documents=(
        "수출 실적 증빙", "영문 회사소개서", "영문 제품 카탈로그", "SAM.gov 등록 증빙 (UEI)",
    ),
    token_budget=1600,
)

BUILTIN_DOMAINS: tuple[DomainDefinition, ...] = (
    MANUFACTURING,
    ENVIRONMENT,
    DIGITAL,
    FINANCE,
    STARTUP,
    EXPORT,
)
