"""
Schemas for the Loan Mix Optimizer

Each Pydantic model is either an input accepted by the API (LoanOffer, OptimizeRequest,
ParseRequest, ExplainRequest) or a value derived by the optimizer (AllocationEntry,
LoanStats, PlanSummary, Plan). Nothing is persisted; every plan is built fresh per request.
"""
from typing import Optional, List, Literal
from pydantic import BaseModel, ConfigDict, Field, model_validator

TargetMode = Literal["gross", "net"]


# Inputs
class LoanOffer(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str = Field("", description="Label shown in the plan, e.g. Federal Unsubsidized; blank names are numbered per request")
    interest_rate: float = Field(0.0, ge=0, allow_inf_nan=False, description="Annual nominal rate in percent (6.53 = 6.53%)")
    origination_fee_percent: float = Field(0.0, ge=0, allow_inf_nan=False, description="Percent of principal withheld at disbursement; >= 100 means no usable capacity")
    borrowing_cap: Optional[float] = Field(None, allow_inf_nan=False, description="Maximum principal drawable; None means uncapped, <= 0 means no capacity")
    term_years: float = Field(10.0, gt=0, allow_inf_nan=False, description="Repayment term in years")
    in_school_months: float = Field(0.0, ge=0, allow_inf_nan=False, description="Months of interest accrual before repayment begins")
    subsidized_in_school: bool = Field(False, description="In-school interest is waived when true")


class OptimizeRequest(BaseModel):
    target: float = Field(..., gt=0, allow_inf_nan=False, description="Amount to finance ($)")
    loans: List[LoanOffer] = Field(..., min_length=1)
    mode: TargetMode = Field("gross", description="gross = principal needed, net = cash needed after fees")
    amortize: bool = Field(True, description="Include level-payment repayment figures per loan")

    @model_validator(mode="after")
    def number_unnamed_loans(self):
        self.loans = [
            o if o.name.strip() else o.model_copy(update={"name": f"Loan {i}"})
            for i, o in enumerate(self.loans, start=1)
        ]
        return self


class ParseRequest(BaseModel):
    text: str


class ParseResponse(BaseModel):
    target: Optional[float] = None
    loans: List[LoanOffer] = []
    errors: List[str] = []


# Derived
class LoanStats(BaseModel):
    loan_name: str
    principal_used: float
    share: float = Field(0.0, description="Fraction of the plan's total principal")
    origination_fee: float
    net_proceeds: float
    in_school_interest: float
    capitalized_balance: float
    monthly_payment: Optional[float] = None
    total_repaid: Optional[float] = None
    total_interest: Optional[float] = None


class AllocationEntry(BaseModel):
    offer: LoanOffer
    principal_used: float
    cost_per_dollar: float
    stats: Optional[LoanStats] = None


class PlanSummary(BaseModel):
    total_principal: float = 0.0
    total_fees: float = 0.0
    total_net_proceeds: float = 0.0
    total_in_school_interest: float = 0.0
    total_monthly_payment: Optional[float] = None
    total_repaid: Optional[float] = None
    blended_cost_per_dollar: float = 0.0


class Plan(BaseModel):
    target: float
    mode: TargetMode = "gross"
    allocation: List[AllocationEntry]
    shortfall: float = Field(0.0, ge=0, description="Part of the target left unmet under current caps")
    feasible: bool
    summary: PlanSummary
    notes: Optional[str] = None


class ExplainRequest(BaseModel):
    plan: Plan


class ExplainResponse(BaseModel):
    explanation: str
