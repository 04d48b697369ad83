"""
Local SEO Analyzer

NAP details, local signals, trust and credibility (E-E-A-T) and the
conversion offers local service businesses rely on.
"""

import re
from typing import List

from site_audit.analyzers.base import CheckResult, FactorAnalyzer, PageContext, check, ok_or, tiered
from site_audit.document import schema_types
from site_audit.models import Category, Importance, PageType, Status
from site_audit.page_types import ADDRESS_RE, EMAIL_RE, PHONE_RE

HIGH, MEDIUM, LOW = Importance.HIGH, Importance.MEDIUM, Importance.LOW

LOCAL_TERMS = ["city", "town", "area", "local", "near", "serving", "county", "region"]
CITY_RE = re.compile(r"\b[A-Z][a-z]+(?:\s+[A-Z][a-z]+)?\s+(?:city|town|area|county)\b", re.I)
YEARS_RE = re.compile(
    r"(?:since|established|founded)\s*(?:in\s*)?\d{4}|\d+\+?\s*years?\s*(?:in\s*business|of\s*experience|experience)",
    re.I,
)
LOCAL_SCHEMA_TYPES = {"LocalBusiness", "Organization", "PostalAddress"}
SOCIAL_SELECTOR = (
    'a[href*="facebook.com"], a[href*="twitter.com"], a[href*="x.com/"], '
    'a[href*="linkedin.com"], a[href*="instagram.com"], a[href*="youtube.com"]'
)


def _has_phone(ctx: PageContext) -> bool:
    return ctx.has(PHONE_RE) or ctx.count('a[href^="tel:"], [itemprop="telephone"]') > 0


def _has_email(ctx: PageContext) -> bool:
    return ctx.has(EMAIL_RE) or ctx.count('a[href^="mailto:"], [itemprop="email"]') > 0


def _has_address(ctx: PageContext) -> bool:
    return ctx.has(ADDRESS_RE) or ctx.count('address, .address, [itemprop="address"]') > 0


def _has_business_name(ctx: PageContext) -> bool:
    h1 = ctx.page.headings_at(1)
    logo = ctx.doc.select_one('img[alt*="logo" i], .logo img')
    logo_alt = ctx.doc.attr(logo, "alt") if logo is not None else ""
    return len(ctx.page.title) > 5 or bool(h1 and len(h1[0]) > 5) or len(logo_alt or "") > 5


def _link_texts(ctx: PageContext) -> List[str]:
    return [link.text.lower() for link in ctx.page.links]


class LocalSEOAnalyzer(FactorAnalyzer):
    """Local search, trust and credibility factors."""

    name = "local_seo"
    category = Category.LOCAL

    @check("NAP Consistency (Name, Address, Phone)", HIGH, "Business name, address and phone on the page")
    def _nap(self, ctx: PageContext) -> CheckResult:
        found = {
            "name": _has_business_name(ctx),
            "address": _has_address(ctx),
            "phone": _has_phone(ctx),
        }
        score = sum(found.values())
        missing = [key for key, present in found.items() if not present]
        rationale = f"{score}/3 NAP elements" + (f", missing {', '.join(missing)}" if missing else "")
        return tiered(score, 3, 2), rationale

    @check("Google Business Profile Integration", HIGH, "Links or references to the Google Business Profile")
    def _google_business(self, ctx: PageContext) -> CheckResult:
        linked = ctx.count('a[href*="google.com/maps"], a[href*="business.google.com"], a[href*="g.page"]') > 0
        mentioned = "google" in ctx.full_text_lower and ctx.mentions("business", "maps") > 0
        if linked or mentioned:
            return Status.OK, "Google Business Profile referenced"
        return Status.OFI, "No Google Business Profile link"

    @check("Local Keyword Optimization", HIGH, "City, region and proximity terms in copy and URL")
    def _local_keywords(self, ctx: PageContext) -> CheckResult:
        url_words = ctx.page.url.lower().replace("/", " ").replace("-", " ")
        found = [term for term in LOCAL_TERMS if term in ctx.full_text_lower or term in url_words]
        found.extend(match.group(0) for match in CITY_RE.finditer(ctx.text))
        unique = list(dict.fromkeys(found))
        return ok_or(len(unique) >= 3), f"Local terms: {', '.join(unique[:6]) or 'none'}"

    @check("Location-Specific Pages", MEDIUM, "Dedicated pages targeting each served area")
    def _location_pages(self, ctx: PageContext) -> CheckResult:
        is_location = ctx.page.page_type in (PageType.LOCATION, PageType.SERVICE_AREA)
        is_location = is_location or any(part in ctx.page.url.lower() for part in ("/location", "/area"))
        if is_location or ctx.mentions("serving", "service area"):
            return Status.OK, "Page targets a specific location"
        return Status.NA, "Not a location page"

    @check("Local Business Schema Markup", HIGH, "LocalBusiness schema with address details")
    def _local_schema(self, ctx: PageContext) -> CheckResult:
        types = set(schema_types(ctx.page.structured_data))
        has_address = any("address" in obj for obj in ctx.page.structured_data)
        if types & LOCAL_SCHEMA_TYPES or has_address:
            return Status.OK, f"Schema types: {', '.join(sorted(types)) or 'address only'}"
        return Status.PRIORITY_OFI, "No local business schema"

    @check("Customer Reviews and Testimonials", HIGH, "Visible customer feedback")
    def _reviews(self, ctx: PageContext) -> CheckResult:
        elements = ctx.count(".review, .testimonial, .rating, .feedback")
        mentioned = ctx.mentions("review", "testimonial", "5 star", "customer says") > 0
        if elements >= 3 or mentioned:
            return Status.OK, f"{elements} review elements"
        if elements >= 1:
            return Status.OFI, f"Only {elements} review elements"
        return Status.PRIORITY_OFI, "No reviews or testimonials"

    @check("Local Citation Building", MEDIUM, "References to BBB, Yelp and local directories")
    def _citations(self, ctx: PageContext) -> CheckResult:
        linked = ctx.count('a[href*="bbb.org"], a[href*="yelp.com"], a[href*="angi.com"], a[href*="angieslist"]')
        mentioned = ctx.mentions("better business bureau", "chamber of commerce", "yelp", "angi")
        return ok_or(linked + mentioned > 0), f"{linked} directory links, {mentioned} directory mentions"

    @check("Service Area Definition", MEDIUM, "Clearly stated coverage area")
    def _service_area(self, ctx: PageContext) -> CheckResult:
        found = ctx.mentions("service area", "serving", "coverage area", "we serve")
        return ok_or(found > 0), "Service area described" if found else "No service area statement"

    @check("Business Hours Display", MEDIUM, "Opening hours visible")
    def _hours(self, ctx: PageContext) -> CheckResult:
        found = ctx.mentions("hours", "open ", "monday", "24/7") + ctx.count(".hours, .business-hours, .schedule")
        return ok_or(found > 0), "Business hours shown" if found else "No business hours"

    @check("Map and Directions Integration", MEDIUM, "Embedded map or directions link")
    def _map(self, ctx: PageContext) -> CheckResult:
        maps = ctx.count('iframe[src*="maps"], iframe[src*="google"], .map, #map')
        directions = ctx.count('a[href*="maps.google"], a[href*="google.com/maps"], a[href*="directions"]')
        return ok_or(maps + directions > 0), f"{maps} maps, {directions} direction links"

    @check("Author and Expert Credentials", HIGH, "Expertise signals for the people behind the content")
    def _author_expertise(self, ctx: PageContext) -> CheckResult:
        found = ctx.mentions("expert", "specialist", "professional", "certified")
        found += ctx.count('[rel="author"], .author, .expert')
        return ok_or(found > 0), f"{found} expertise signals"

    @check("Business Licensing and Credentials", HIGH, "Licensed, insured or accredited status")
    def _licensing(self, ctx: PageContext) -> CheckResult:
        found = ctx.mentions("licensed", "insured", "bonded", "certified", "accredited")
        return ok_or(found > 0), f"{found} credential mentions"

    @check("Comprehensive Contact Information", HIGH, "Several ways to get in touch")
    def _contact_info(self, ctx: PageContext) -> CheckResult:
        methods = sum([
            _has_phone(ctx),
            _has_email(ctx),
            _has_address(ctx),
            ctx.count(".contact, .contact-us, .get-in-touch, form") > 0,
        ])
        return tiered(methods, 3, 2), f"{methods}/4 contact methods"

    @check("Professional Associations", MEDIUM, "Membership in trade associations")
    def _associations(self, ctx: PageContext) -> CheckResult:
        if ctx.mentions("association", "member of", "affiliate", "certified by", "accredited"):
            return Status.OK, "Professional associations mentioned"
        return Status.NA, "No associations mentioned"

    @check("Years in Business", MEDIUM, "Founding year or years of experience")
    def _years(self, ctx: PageContext) -> CheckResult:
        match = YEARS_RE.search(ctx.text)
        return ok_or(match is not None), f"States '{match.group(0)}'" if match else "Years in business not stated"

    @check("Professional Certifications", HIGH, "Certifications and licenses listed")
    def _certifications(self, ctx: PageContext) -> CheckResult:
        found = ctx.mentions("certified", "licensed", "qualification", "credential", "certificate")
        return ok_or(found > 0), f"{found} certification mentions"

    @check("Team Expertise Showcase", MEDIUM, "Team members and their experience")
    def _team(self, ctx: PageContext) -> CheckResult:
        found = ctx.mentions("team", "staff", "employees", "experts", "specialists")
        found += ctx.count(".team, .staff, .employee")
        return ok_or(found > 0), "Team featured" if found else "No team information"

    @check("Client Testimonials", HIGH, "Quoted client testimonials")
    def _testimonials(self, ctx: PageContext) -> CheckResult:
        testimonials = ctx.count(".testimonial, .client-review, .customer-feedback")
        quotes = ctx.count(".quote, blockquote")
        return ok_or(testimonials >= 2 or quotes >= 2), f"{testimonials} testimonials, {quotes} quotes"

    @check("Case Studies and Success Stories", LOW, "Examples of completed work")
    def _case_studies(self, ctx: PageContext) -> CheckResult:
        if ctx.mentions("case study", "success story", "before and after", "our projects", "results"):
            return Status.OK, "Case studies present"
        return Status.NA, "No case studies"

    @check("Awards and Recognition", LOW, "Awards, ratings and honors")
    def _awards(self, ctx: PageContext) -> CheckResult:
        if ctx.mentions("award", "recognition", "honor", "winner", "best of", "top rated"):
            return Status.OK, "Awards mentioned"
        return Status.NA, "No awards mentioned"

    @check("Privacy Policy", MEDIUM, "Link to a privacy policy")
    def _privacy(self, ctx: PageContext) -> CheckResult:
        found = ctx.count('a[href*="privacy"]') > 0 or any("privacy" in text for text in _link_texts(ctx))
        return ok_or(found), "Privacy policy linked" if found else "No privacy policy link"

    @check("Terms of Service", LOW, "Link to terms of service")
    def _terms(self, ctx: PageContext) -> CheckResult:
        found = ctx.count('a[href*="terms"]') > 0 or any("terms" in text for text in _link_texts(ctx))
        return ok_or(found), "Terms linked" if found else "No terms of service link"

    @check("Social Media Integration", LOW, "Links to social profiles")
    def _social(self, ctx: PageContext) -> CheckResult:
        links = ctx.count(SOCIAL_SELECTOR)
        if links >= 2:
            return Status.OK, f"{links} social links"
        if links == 1:
            return Status.OFI, "One social link"
        return Status.NA, "No social links"

    @check("Physical Business Address", HIGH, "Street address on the page")
    def _address(self, ctx: PageContext) -> CheckResult:
        found = _has_address(ctx)
        return ok_or(found, Status.PRIORITY_OFI), "Address shown" if found else "No business address"

    @check("Phone Number Visibility", HIGH, "Phone number on the page")
    def _phone(self, ctx: PageContext) -> CheckResult:
        found = _has_phone(ctx)
        return ok_or(found, Status.PRIORITY_OFI), "Phone number shown" if found else "No phone number"

    @check("Email Contact Visibility", MEDIUM, "Email address or mailto link")
    def _email(self, ctx: PageContext) -> CheckResult:
        found = _has_email(ctx)
        return ok_or(found), "Email contact shown" if found else "No email contact"

    @check("About Us Page Content", MEDIUM, "Company story and background")
    def _about(self, ctx: PageContext) -> CheckResult:
        if ctx.page.page_type == PageType.ABOUT or "/about" in ctx.page.url.lower():
            return Status.OK, "About page"
        if ctx.mentions("about us", "our story", "our company"):
            return Status.OK, "About information present"
        return Status.NA, "No about information"

    @check("Professional Photography", LOW, "Photos of the team, office and work")
    def _photos(self, ctx: PageContext) -> CheckResult:
        photos = sum(
            1 for image in ctx.page.images
            if any(word in image.alt.lower() for word in ("team", "staff", "office", "work", "project"))
        )
        if photos >= 2:
            return Status.OK, f"{photos} team or work photos"
        if photos == 1:
            return Status.OFI, "One team or work photo"
        return Status.NA, "No team or work photos"

    @check("Insurance and Bonding Information", MEDIUM, "Insurance and bonding status")
    def _insurance(self, ctx: PageContext) -> CheckResult:
        if ctx.mentions("insured", "bonded", "insurance", "liability"):
            return Status.OK, "Insurance information present"
        return Status.NA, "No insurance information"

    @check("Payment Options and Policies", LOW, "Accepted payment methods and financing")
    def _payment(self, ctx: PageContext) -> CheckResult:
        found = ctx.mentions("payment", "credit card", "financing", "payment plans", "we accept")
        return ok_or(found > 0), "Payment options listed" if found else "No payment information"

    @check("Local Content Relevance", MEDIUM, "Community-focused copy")
    def _local_content(self, ctx: PageContext) -> CheckResult:
        found = ctx.mentions("local", "community", "neighborhood", "area residents", "local customers")
        return ok_or(found > 0), f"{found} local community references"

    @check("Competitive Advantage Messaging", MEDIUM, "What sets the business apart")
    def _advantage(self, ctx: PageContext) -> CheckResult:
        found = ctx.mentions("advantage", "unique", "different", "better", "superior", "exclusive", "why choose")
        return ok_or(found > 0), f"{found} differentiating claims"

    @check("Service Differentiation", MEDIUM, "Specialized or tailored services")
    def _differentiation(self, ctx: PageContext) -> CheckResult:
        found = ctx.mentions("specialized", "specialize", "expert", "custom", "personalized", "tailored")
        return ok_or(found > 0), f"{found} differentiation terms"

    @check("Emergency Service Availability", LOW, "Emergency or same-day service")
    def _emergency(self, ctx: PageContext) -> CheckResult:
        if ctx.mentions("emergency", "24/7", "urgent", "immediate", "same day", "same-day"):
            return Status.OK, "Emergency service offered"
        return Status.NA, "No emergency service mentioned"

    @check("Free Estimates and Consultations", LOW, "Free quote or consultation offer")
    def _free_estimates(self, ctx: PageContext) -> CheckResult:
        if ctx.mentions("free estimate", "free quote", "free consultation", "no obligation"):
            return Status.OK, "Free estimate offered"
        return Status.NA, "No free estimate offer"
